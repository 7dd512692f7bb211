"""Recursive text chunking that prefers natural boundaries."""

import re

from ..errors import ChunkingError

DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", " ", "")


def count_words(text: str) -> int:
    """Whitespace-delimited word count, the unit chunk sizes are measured in."""
    return len(text.split())


def normalize_text(page_texts: list[str]) -> str:
    """Collapse intra-line whitespace and join pages with paragraph breaks."""
    pages = []
    for page in page_texts:
        lines = [re.sub(r"[ \t\f\v]+", " ", line).strip() for line in page.splitlines()]
        text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()
        if text:
            pages.append(text)
    return "\n\n".join(pages)


def split_text(
    text: str,
    chunk_size: int = 500,
    chunk_overlap: int = 100,
    separators: list[str] | tuple[str, ...] = DEFAULT_SEPARATORS,
) -> list[str]:
    """Split text into overlapping chunks, trying the most natural separator first.

    Args:
        text: The text to chunk.
        chunk_size: Maximum words per chunk.
        chunk_overlap: Words of trailing context carried into the next chunk.
        separators: Boundary strings in order of preference. The empty string
            means a hard split between words.

    Returns:
        List of stripped, non-empty chunks in document order. A piece that no
        remaining separator can break is emitted whole, even if oversized.
    """
    if chunk_size <= 0:
        raise ChunkingError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ChunkingError(
            f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap} for size {chunk_size}"
        )

    chunks = _split(text, list(separators), chunk_size, chunk_overlap)
    return [c for c in (c.strip() for c in chunks) if c]


def _split(text: str, separators: list[str], chunk_size: int, chunk_overlap: int) -> list[str]:
    separator = separators[-1] if separators else ""
    remaining: list[str] = []
    for i, sep in enumerate(separators):
        if sep == "" or sep in text:
            separator = sep
            remaining = separators[i + 1:]
            break

    pieces = _split_on(text, separator)
    output: list[str] = []
    fitting: list[str] = []

    for piece in pieces:
        if count_words(piece) <= chunk_size:
            fitting.append(piece)
            continue
        if fitting:
            output.extend(_merge(fitting, separator, chunk_size, chunk_overlap))
            fitting = []
        if remaining:
            output.extend(_split(piece, remaining, chunk_size, chunk_overlap))
        else:
            output.append(piece)

    if fitting:
        output.extend(_merge(fitting, separator, chunk_size, chunk_overlap))
    return output


def _split_on(text: str, separator: str) -> list[str]:
    """Split on separator, keeping its visible part (e.g. the period of '. ')."""
    if separator == "":
        return text.split()

    kept = separator.rstrip()
    parts = text.split(separator)
    if kept:
        parts = [p + kept for p in parts[:-1]] + parts[-1:]
    return [p for p in parts if p.strip()]


def _merge(pieces: list[str], separator: str, chunk_size: int, chunk_overlap: int) -> list[str]:
    """Greedily pack pieces into chunks, carrying up to chunk_overlap words forward."""
    joiner = separator[len(separator.rstrip()):] or " "
    chunks: list[str] = []
    window: list[str] = []
    total = 0

    for piece in pieces:
        n = count_words(piece)
        if window and total + n > chunk_size:
            chunks.append(joiner.join(window))
            while window and (total > chunk_overlap or total + n > chunk_size):
                total -= count_words(window.pop(0))
        window.append(piece)
        total += n

    if window:
        chunks.append(joiner.join(window))
    return chunks
