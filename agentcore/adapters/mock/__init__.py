"""
Mock Adapters
Deterministic adapters for tests and local development.
"""
from .llm_adapter import MockLLMAdapter
from .embedding_adapter import MockEmbeddingAdapter
from .vector_store_adapter import MockVectorStoreAdapter

__all__ = [
    "MockLLMAdapter",
    "MockEmbeddingAdapter",
    "MockVectorStoreAdapter",
]
