"""Plain text file parser."""

from pathlib import Path
from typing import Any


class TextParser:
    """Parse plain text files as a single page."""

    def parse(self, file_path: Path) -> dict[str, Any]:
        text = file_path.read_text(encoding="utf-8", errors="replace")
        return {
            "pages": [text],
            "metadata": {"source_type": "text"},
        }
