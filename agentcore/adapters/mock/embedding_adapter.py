"""
Mock Embedding Adapter
Hash-seeded unit vectors so identical texts always land on the same point.
"""
import asyncio
import hashlib
import random
from typing import Dict, List, Optional

from ...ports.embedding_port import EmbeddingPort, EmbeddingResult


class MockEmbeddingAdapter(EmbeddingPort):
    """
    Deterministic embedding model for tests.

    ``fixed`` pins exact texts to hand-picked vectors when a test needs
    known distances. Every embedded text is kept in ``texts``.
    """

    def __init__(
        self,
        dimensions: int = 64,
        fixed: Optional[Dict[str, List[float]]] = None,
        delay: float = 0.0
    ):
        self._dimensions = dimensions
        self.fixed = dict(fixed or {})
        self.delay = delay
        self.texts: List[str] = []

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def call_count(self) -> int:
        return len(self.texts)

    def vector_for(self, text: str) -> List[float]:
        """The vector ``embed_text`` returns for ``text``"""
        if text in self.fixed:
            return list(self.fixed[text])

        seed = int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:8], 16)
        rng = random.Random(seed)
        vector = [rng.gauss(0, 1) for _ in range(self._dimensions)]

        norm = sum(x * x for x in vector) ** 0.5
        return [x / norm for x in vector] if norm > 0 else vector

    async def embed_text(self, text: str) -> EmbeddingResult:
        self.texts.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)

        return EmbeddingResult(text=text, embedding=self.vector_for(text), token_count=len(text.split()))
