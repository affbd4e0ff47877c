"""
Embedding Port
The vector model behind retrieval; the agent core never sees how it works.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class EmbeddingResult:
    """One embedded text"""
    text: str
    embedding: List[float]
    token_count: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.embedding)


class EmbeddingPort(ABC):
    """
    Text to vector.

    ``dimensions`` is the vector size every result must have; the
    retrieval gateway rejects results of any other size.
    """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        pass

    @abstractmethod
    async def embed_text(self, text: str) -> EmbeddingResult:
        """Embed a query or document text"""
        pass
