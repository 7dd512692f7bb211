"""DOCX file parser."""

from pathlib import Path
from typing import Any


class DocxParser:
    """Parse DOCX files using python-docx.

    DOCX has no stable page boundaries, so the body is returned as one page.
    """

    def parse(self, file_path: Path) -> dict[str, Any]:
        from docx import Document

        doc = Document(str(file_path))
        paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]

        metadata: dict[str, Any] = {"source_type": "docx"}
        if doc.core_properties.title:
            metadata["title"] = doc.core_properties.title

        return {
            "pages": ["\n\n".join(paragraphs)],
            "metadata": metadata,
        }
