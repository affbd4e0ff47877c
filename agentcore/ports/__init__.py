"""
Ports Layer
Abstract interfaces for external collaborators (LLM, Embedding, VectorStore).
Following the Ports and Adapters (Hexagonal) Architecture pattern.
"""
from .llm_port import LLMPort
from .embedding_port import EmbeddingPort, EmbeddingResult
from .vector_store_port import (
    VectorStorePort,
    VectorDocument,
    SearchResult,
    DistanceMetric,
)

__all__ = [
    "LLMPort",
    "EmbeddingPort",
    "EmbeddingResult",
    "VectorStorePort",
    "VectorDocument",
    "SearchResult",
    "DistanceMetric",
]
