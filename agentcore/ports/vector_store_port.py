"""
Vector Store Port Interface
Abstract interface for nearest-neighbour search over stored documents.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum


class DistanceMetric(str, Enum):
    """Distance metric reported by the backing store"""
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dot_product"


@dataclass
class VectorDocument:
    """Document with vector embedding"""
    id: str
    embedding: List[float]
    content: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """
    Raw nearest-neighbour hit.

    ``distance`` is expressed in ``metric`` units; converting it to a
    similarity is the caller's job.
    """
    id: str
    distance: float
    metric: DistanceMetric = DistanceMetric.COSINE
    content: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorStorePort(ABC):
    """
    Abstract interface for vector database operations.

    Index structure and tuning belong to the implementation.
    """

    @abstractmethod
    async def insert(self, collection: str, documents: List[VectorDocument]) -> List[str]:
        """
        Insert documents into a collection.

        Args:
            collection: Collection name
            documents: Documents to insert

        Returns:
            List of inserted document IDs
        """
        pass

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_embedding: List[float],
        top_k: int = 10,
        filter_metadata: Optional[Dict[str, Any]] = None
    ) -> List[SearchResult]:
        """
        Find the nearest stored documents.

        Args:
            collection: Collection name
            query_embedding: Query vector
            top_k: Maximum number of raw candidates
            filter_metadata: Optional exact-match metadata filter

        Returns:
            Raw hits, nearest first
        """
        pass
