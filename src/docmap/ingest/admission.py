"""Admission policy: how many documents (and bytes) a session may hold."""

import logging
from dataclasses import dataclass
from typing import Any

from ..errors import AdmissionError

logger = logging.getLogger(__name__)


@dataclass
class ByteBudget:
    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @property
    def exceeded(self) -> bool:
        return self.used > self.limit


class AdmissionPolicy:
    """Hard ceiling on document count, advisory ceiling on cumulative bytes."""

    def __init__(self, max_documents: int = 5, max_total_bytes: int = 50 * 1024 * 1024):
        self.max_documents = max_documents
        self.max_total_bytes = max_total_bytes

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "AdmissionPolicy":
        cfg = config.get("admission", {})
        return cls(
            max_documents=cfg.get("max_documents", 5),
            max_total_bytes=cfg.get("max_total_bytes", 50 * 1024 * 1024),
        )

    def check(self, held_count: int, incoming: int = 1) -> None:
        """Raise AdmissionError if accepting `incoming` more would exceed the ceiling."""
        if held_count + incoming > self.max_documents:
            raise AdmissionError(
                f"Upload limit exceeded: {held_count} held + {incoming} new > "
                f"{self.max_documents} documents allowed"
            )

    def budget(self, held_bytes: int) -> ByteBudget:
        budget = ByteBudget(used=held_bytes, limit=self.max_total_bytes)
        if budget.exceeded:
            logger.warning(f"Byte budget exceeded: {held_bytes} of {self.max_total_bytes} bytes held")
        return budget
