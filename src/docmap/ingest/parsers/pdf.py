"""PDF file parser."""

import re
from pathlib import Path
from typing import Any


class PdfParser:
    """Parse PDF files page by page using pypdf."""

    def parse(self, file_path: Path) -> dict[str, Any]:
        from pypdf import PdfReader

        reader = PdfReader(str(file_path))
        pages = [self._clean_page(page.extract_text() or "") for page in reader.pages]

        metadata: dict[str, Any] = {"source_type": "pdf", "mime_type": "application/pdf"}
        meta = reader.metadata
        if meta and meta.title:
            t = meta.title.strip()
            if not t.startswith(("{", "[")) and len(t) < 200 and "\n" not in t:
                metadata["title"] = t

        return {"pages": pages, "metadata": metadata}

    @staticmethod
    def _clean_page(text: str) -> str:
        """Rejoin lines that pypdf breaks mid-sentence.

        Blank lines stay paragraph breaks; list items and headings keep their
        own line.
        """
        paragraphs: list[str] = []
        current: list[str] = []

        for line in text.split("\n"):
            stripped = line.strip()
            if not stripped:
                if current:
                    paragraphs.append(" ".join(current))
                    current = []
                continue

            is_structural = bool(
                re.match(r"^#{1,6}\s", stripped)
                or re.match(r"^[-*•]\s", stripped)
                or re.match(r"^\d+[.)]\s", stripped)
            )
            if is_structural:
                if current:
                    paragraphs.append(" ".join(current))
                    current = []
                paragraphs.append(stripped)
            else:
                current.append(stripped)

        if current:
            paragraphs.append(" ".join(current))

        return "\n".join(paragraphs)
