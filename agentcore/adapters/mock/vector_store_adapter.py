"""
Mock Vector Store Adapter
In-memory implementation with real distance computation.
"""
from typing import Any, Dict, List, Optional
import asyncio
import math

from ...ports.vector_store_port import (
    DistanceMetric,
    SearchResult,
    VectorDocument,
    VectorStorePort,
)


class MockVectorStoreAdapter(VectorStorePort):
    """
    Mock vector store adapter for testing and development.

    Reports raw distances in the configured metric, nearest first.
    """

    def __init__(
        self,
        metric: DistanceMetric = DistanceMetric.COSINE,
        simulate_delay: bool = False,
        delay_ms: int = 10
    ):
        self.metric = metric
        self.simulate_delay = simulate_delay
        self.delay_ms = delay_ms
        self._collections: Dict[str, Dict[str, VectorDocument]] = {}

    def _compute_distance(self, vec1: List[float], vec2: List[float]) -> float:
        """Raw distance between two vectors in the configured metric"""
        if self.metric == DistanceMetric.COSINE:
            dot_product = sum(a * b for a, b in zip(vec1, vec2))
            norm1 = math.sqrt(sum(a * a for a in vec1))
            norm2 = math.sqrt(sum(b * b for b in vec2))
            if norm1 == 0 or norm2 == 0:
                return 1.0
            return 1.0 - dot_product / (norm1 * norm2)

        if self.metric == DistanceMetric.EUCLIDEAN:
            return math.sqrt(sum((a - b) ** 2 for a, b in zip(vec1, vec2)))

        return sum(a * b for a, b in zip(vec1, vec2))

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))

    async def insert(self, collection: str, documents: List[VectorDocument]) -> List[str]:
        """Insert documents"""
        if self.simulate_delay:
            await asyncio.sleep(self.delay_ms / 1000)

        stored = self._collections.setdefault(collection, {})
        for doc in documents:
            stored[doc.id] = doc
        return [doc.id for doc in documents]

    async def search(
        self,
        collection: str,
        query_embedding: List[float],
        top_k: int = 10,
        filter_metadata: Optional[Dict[str, Any]] = None
    ) -> List[SearchResult]:
        """Search for nearest vectors"""
        if collection not in self._collections:
            return []

        if self.simulate_delay:
            await asyncio.sleep(self.delay_ms / 1000)

        results = []
        for doc in self._collections[collection].values():
            if filter_metadata and any(doc.metadata.get(k) != v for k, v in filter_metadata.items()):
                continue
            results.append(SearchResult(
                id=doc.id,
                distance=self._compute_distance(query_embedding, doc.embedding),
                metric=self.metric,
                content=doc.content,
                metadata=dict(doc.metadata)
            ))

        # Dot product grows with similarity; the other metrics shrink
        results.sort(key=lambda r: r.distance, reverse=self.metric == DistanceMetric.DOT_PRODUCT)
        return results[:top_k]
