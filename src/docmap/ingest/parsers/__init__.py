"""Text extraction for supported source formats."""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

from ...errors import DocmapError, ExtractionError
from .docx import DocxParser
from .pdf import PdfParser
from .text import TextParser


@dataclass
class ExtractedText:
    """Raw per-page text of a source file."""
    page_texts: list[str]
    page_count: int
    mime_type: str = "text/plain"
    metadata: dict = field(default_factory=dict)


PARSERS = {
    ".txt": TextParser,
    ".text": TextParser,
    ".md": TextParser,
    ".log": TextParser,
    ".csv": TextParser,
    ".pdf": PdfParser,
    ".docx": DocxParser,
}


def extract_text(file_path: str | Path) -> ExtractedText:
    """Extract page texts from a file, raising ExtractionError on any failure."""
    path = Path(file_path)
    parser_cls = PARSERS.get(path.suffix.lower())
    if parser_cls is None:
        raise ExtractionError(f"Unsupported file type: {path.suffix or '(none)'}", name=path.name)
    if not path.is_file():
        raise ExtractionError("File not found", name=path.name)

    try:
        result = parser_cls().parse(path)
    except DocmapError:
        raise
    except Exception as e:
        raise ExtractionError(f"Could not read file: {e}", name=path.name) from e

    mime_type = mimetypes.guess_type(path.name)[0] or result["metadata"].get("mime_type", "text/plain")
    return ExtractedText(
        page_texts=result["pages"],
        page_count=len(result["pages"]),
        mime_type=mime_type,
        metadata=result["metadata"],
    )


__all__ = ["PARSERS", "ExtractedText", "extract_text", "TextParser", "PdfParser", "DocxParser"]
