"""Data models used throughout docmap."""

import secrets
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

NodeType = Literal["document", "topic", "concept"]
EdgeType = Literal["similarity", "topic", "reference"]


def new_id(prefix: str = "") -> str:
    """Millisecond timestamp plus a random suffix."""
    return f"{prefix}{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DocumentMetadata:
    """Per-document metadata produced by the pipeline."""
    name: str
    type: str
    page_numbers: list[int] = field(default_factory=list)
    chunk_sizes: list[int] = field(default_factory=list)
    semantic_similarity: list[float] = field(default_factory=list)
    processing_errors: list[str] = field(default_factory=list)


@dataclass
class ProcessedDocument:
    """A chunked and embedded document.

    `chunks` and `embeddings` are positionally aligned; `summary` is the only
    field expected to change after construction.
    """
    id: str
    chunks: list[str]
    embeddings: list[list[float]]
    metadata: DocumentMetadata
    summary: str | None = None

    def __post_init__(self):
        n = len(self.chunks)
        sizes = (
            len(self.embeddings),
            len(self.metadata.chunk_sizes),
            len(self.metadata.semantic_similarity),
        )
        if any(s != n for s in sizes):
            raise ValueError(
                f"Misaligned document {self.id}: {n} chunks, {sizes[0]} embeddings, "
                f"{sizes[1]} chunk sizes, {sizes[2]} similarity scores"
            )

    @property
    def name(self) -> str:
        return self.metadata.name


@dataclass
class ResearchNote:
    """A user note attached to a document (and optionally a chunk of it)."""
    id: str
    document_id: str
    chunk_index: int
    content: str
    tags: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_now)
    links: list[str] = field(default_factory=list)

    def __post_init__(self):
        # tags behave as a set but keep first-seen order
        self.tags = list(dict.fromkeys(self.tags))

    @classmethod
    def create(
        cls,
        document_id: str,
        content: str,
        tags: list[str] | tuple[str, ...] = (),
        chunk_index: int = 0,
    ) -> "ResearchNote":
        return cls(
            id=new_id("note-"),
            document_id=document_id,
            chunk_index=chunk_index,
            content=content,
            tags=list(tags),
        )


@dataclass
class ConceptNode:
    id: str
    label: str
    type: NodeType
    size: int | None = None
    group: int | None = None


@dataclass
class ConceptEdge:
    source: str
    target: str
    weight: float
    type: EdgeType


@dataclass
class ConceptGraph:
    """Derived graph over documents, topics and notes."""
    nodes: list[ConceptNode] = field(default_factory=list)
    edges: list[ConceptEdge] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [
                {k: v for k, v in asdict(n).items() if v is not None}
                for n in self.nodes
            ],
            "edges": [asdict(e) for e in self.edges],
        }


@dataclass
class DocumentRecord:
    """Persisted shape of a document, as held by the document store.

    `content` is the chunks joined by newlines; chunk boundaries cannot be
    recovered from it.
    """
    id: str
    name: str
    type: str
    size: int
    content: str
    timestamp: str
    processed: bool
    summary: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if data["summary"] is None:
            del data["summary"]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DocumentRecord":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            type=data.get("type", ""),
            size=int(data.get("size", 0)),
            content=data.get("content", ""),
            timestamp=data.get("timestamp", ""),
            processed=bool(data.get("processed", False)),
            summary=data.get("summary"),
        )


@dataclass
class IngestResult:
    """Outcome of ingesting one file."""
    path: str
    id: str = ""
    document: ProcessedDocument | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None
