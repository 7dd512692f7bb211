"""Error types raised by the docmap pipeline."""


class DocmapError(Exception):
    """Base error. Carries the document name and pipeline stage when known."""

    stage: str | None = None

    def __init__(self, message: str, name: str | None = None, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.name = name
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        parts = []
        if self.name:
            parts.append(self.name)
        if self.stage:
            parts.append(self.stage)
        if parts:
            return f"[{' / '.join(parts)}] {self.message}"
        return self.message


class ExtractionError(DocmapError):
    """Source file is malformed, unreadable or unsupported."""
    stage = "extraction"


class ChunkingError(DocmapError):
    """Chunker was given options it cannot honour."""
    stage = "chunking"


class EmbeddingError(DocmapError):
    """Embedding model unavailable or inference failed."""
    stage = "embedding"


class SimilarityError(DocmapError):
    """Vectors cannot be compared (e.g. mismatched dimensions)."""
    stage = "similarity"


class GenerationError(DocmapError):
    """LLM backend failed or returned an empty/blocked response."""
    stage = "generation"


class AdmissionError(DocmapError):
    """Batch would push the held document count over the ceiling."""
    stage = "admission"
