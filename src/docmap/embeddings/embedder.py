"""Chunk embedding using sentence-transformers."""

import asyncio
import logging
from typing import Any

from ..errors import DocmapError, EmbeddingError

logger = logging.getLogger(__name__)


class Embedder:
    """Embeds text chunks with a lazily loaded sentence-transformers model.

    The model is loaded once per embedder, on first use. Concurrent first
    callers wait on the same load. Results are not cached here; callers keep
    the vectors they need.
    """

    def __init__(self, config: dict[str, Any]):
        self.model_name = config.get("embedding_model", "intfloat/e5-large-v2")
        self._model = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._model is not None

    async def load(self):
        """Return the ready model, loading it on the first call."""
        if self._model is not None:
            return self._model
        async with self._lock:
            if self._model is None:
                logger.info(f"Loading embedding model {self.model_name}")
                try:
                    self._model = await asyncio.to_thread(self._load_model)
                except Exception as e:
                    raise EmbeddingError(f"Could not load model {self.model_name}: {e}") from e
        return self._model

    def _load_model(self):
        from sentence_transformers import SentenceTransformer
        return SentenceTransformer(self.model_name)

    @property
    def dimension(self) -> int:
        if self._model is None:
            raise EmbeddingError("Model not loaded yet")
        return self._model.get_sentence_embedding_dimension()

    def _prefixed(self, text: str, kind: str) -> str:
        # e5 models need "passage: " / "query: " prefixes
        if "e5" in self.model_name.lower():
            return f"{kind}: {text}"
        return text

    async def embed(self, text: str, kind: str = "passage") -> list[float]:
        """Embed a single chunk (or a query with kind="query")."""
        model = await self.load()
        try:
            vector = await asyncio.to_thread(model.encode, self._prefixed(text, kind))
        except Exception as e:
            raise EmbeddingError(f"Inference failed: {e}") from e
        return [float(x) for x in vector]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed chunks concurrently; results keep the input order."""
        if not texts:
            return []
        await self.load()
        return list(await asyncio.gather(*(self.embed(t) for t in texts)))


async def embed_chunks(embedder: Any, chunks: list[str], name: str | None = None) -> list[list[float]]:
    """Embed every chunk, tagging failures with the document name."""
    try:
        vectors = await embedder.embed_many(chunks)
    except DocmapError as e:
        raise EmbeddingError(e.message, name=name) from e
    except Exception as e:
        raise EmbeddingError(f"Inference failed: {e}", name=name) from e
    if len(vectors) != len(chunks):
        raise EmbeddingError(
            f"Embedder returned {len(vectors)} vectors for {len(chunks)} chunks", name=name
        )
    return vectors
