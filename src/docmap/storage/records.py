"""JSON-file store of persisted document records."""

import json
import logging
from pathlib import Path

from ..models import DocumentRecord, ProcessedDocument, utc_now

logger = logging.getLogger(__name__)


def to_record(
    doc: ProcessedDocument, size: int, processed: bool = True, record_id: str | None = None
) -> DocumentRecord:
    """Project a processed document into its persisted shape."""
    return DocumentRecord(
        id=record_id or doc.id,
        name=doc.metadata.name,
        type=doc.metadata.type,
        size=size,
        content="\n".join(doc.chunks),
        timestamp=utc_now(),
        processed=processed,
        summary=doc.summary,
    )


def placeholder_record(record_id: str, name: str, type_: str, size: int) -> DocumentRecord:
    """Record shown while a file is still being processed."""
    return DocumentRecord(
        id=record_id,
        name=name,
        type=type_,
        size=size,
        content="",
        timestamp=utc_now(),
        processed=False,
    )


class DocumentStore:
    """Holds DocumentRecords as a JSON array on disk.

    Every mutation rewrites the whole file; the last write wins.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[DocumentRecord]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable document store {self.path}: {e}")
            return []
        return [DocumentRecord.from_dict(item) for item in data if isinstance(item, dict)]

    def save(self, records: list[DocumentRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([r.to_dict() for r in records], indent=2), encoding="utf-8"
        )

    def get(self, record_id: str) -> DocumentRecord | None:
        for record in self.load():
            if record.id == record_id:
                return record
        return None

    def add(self, record: DocumentRecord) -> None:
        records = self.load()
        records.append(record)
        self.save(records)

    def upsert(self, record: DocumentRecord) -> None:
        """Replace the record with the same id, or append it."""
        records = self.load()
        for i, existing in enumerate(records):
            if existing.id == record.id:
                records[i] = record
                break
        else:
            records.append(record)
        self.save(records)

    def remove(self, record_id: str) -> bool:
        records = self.load()
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        self.save(kept)
        return True

    def count(self) -> int:
        return len(self.load())

    def held_bytes(self) -> int:
        return sum(r.size for r in self.load())
