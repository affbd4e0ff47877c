"""
Retrieval Gateway
"Embed text, then similarity search" over the embedding and vector store ports.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from .types import RetrievedDocument
from ..core.config import get_settings
from ..core.errors import RetrievalError
from ..core.logging_framework import AppLogger, LogCategory, Stopwatch
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_store_port import DistanceMetric, SearchResult, VectorDocument, VectorStorePort

logger = logging.getLogger(__name__)
app_logger = AppLogger(__name__)


def distance_to_similarity(distance: float, metric: DistanceMetric) -> float:
    """
    Normalize a raw store distance into a similarity in [0, 1].

    cosine: 1 - d; euclidean: 1 / (1 + d); dot product: taken as-is.
    """
    if metric == DistanceMetric.COSINE:
        similarity = 1.0 - distance
    elif metric == DistanceMetric.EUCLIDEAN:
        similarity = 1.0 / (1.0 + max(distance, 0.0))
    else:
        similarity = distance
    return min(1.0, max(0.0, similarity))


def rank_documents(
    documents: List[RetrievedDocument],
    limit: int,
    similarity_threshold: float
) -> List[RetrievedDocument]:
    """Filter by threshold, order by similarity desc then id asc, truncate"""
    kept = [doc for doc in documents if doc.similarity >= similarity_threshold]
    kept.sort(key=lambda doc: (-doc.similarity, doc.document_id))
    return kept[:max(limit, 0)]


class RetrievalGateway:
    """
    Retrieval over an embedding model and a vector store.

    The store reports raw distances; the gateway converts, filters and
    orders them deterministically. Any port failure becomes RetrievalError.
    """

    def __init__(
        self,
        embedding: EmbeddingPort,
        vector_store: VectorStorePort,
        collection: Optional[str] = None,
        candidate_multiplier: Optional[int] = None
    ):
        settings = get_settings()
        self.embedding = embedding
        self.vector_store = vector_store
        self.collection = collection or settings.RETRIEVAL_COLLECTION
        self.candidate_multiplier = candidate_multiplier or settings.RETRIEVAL_CANDIDATE_MULTIPLIER

    async def _embed(self, text: str) -> List[float]:
        try:
            result = await self.embedding.embed_text(text)
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(f"Embedding failed: {e}", cause=e) from e

        if result.size != self.embedding.dimensions:
            raise RetrievalError(
                f"Embedding has {result.size} dimension(s), expected {self.embedding.dimensions}"
            )
        return result.embedding

    async def retrieve(
        self,
        query_text: str,
        limit: Optional[int] = None,
        similarity_threshold: Optional[float] = None
    ) -> List[RetrievedDocument]:
        """
        Retrieve documents similar to a query.

        Args:
            query_text: Natural-language query
            limit: Maximum number of documents returned
            similarity_threshold: Minimum similarity in [0, 1]

        Returns:
            Documents ranked by similarity descending, ties by id ascending

        Raises:
            RetrievalError: embedding or search failed
        """
        settings = get_settings()
        limit = settings.RETRIEVAL_LIMIT if limit is None else limit
        threshold = settings.RETRIEVAL_THRESHOLD if similarity_threshold is None else similarity_threshold

        if limit <= 0:
            return []

        timer = Stopwatch()
        query_embedding = await self._embed(query_text)

        try:
            hits: List[SearchResult] = await self.vector_store.search(
                self.collection,
                query_embedding,
                top_k=limit * self.candidate_multiplier
            )
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(f"Similarity search failed: {e}", cause=e) from e

        seen = set()
        candidates = []
        for hit in hits:
            if hit.id in seen:
                continue
            seen.add(hit.id)
            candidates.append(RetrievedDocument(
                document_id=hit.id,
                text=hit.content,
                similarity=distance_to_similarity(hit.distance, hit.metric),
                metadata=dict(hit.metadata)
            ))

        documents = rank_documents(candidates, limit, threshold)

        app_logger.debug(
            f"Retrieved {len(documents)}/{len(candidates)} candidate(s)",
            category=LogCategory.RETRIEVAL,
            extra_data={"limit": limit, "threshold": threshold, "elapsed_ms": round(timer.elapsed_ms, 2)}
        )
        return documents

    async def store_document(
        self,
        text: str,
        metadata: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None
    ) -> str:
        """
        Embed a document and insert it into the store.

        Returns:
            The new document id

        Raises:
            RetrievalError: embedding or insert failed
        """
        embedding = await self._embed(text)
        document_metadata = dict(metadata or {})
        if source is not None:
            document_metadata["source"] = source

        document = VectorDocument(
            id=uuid.uuid4().hex,
            embedding=embedding,
            content=text,
            metadata=document_metadata
        )

        try:
            ids = await self.vector_store.insert(self.collection, [document])
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(f"Document insert failed: {e}", cause=e) from e

        logger.info(f"[RetrievalGateway] Stored document {document.id} in '{self.collection}'")
        return ids[0] if ids else document.id
