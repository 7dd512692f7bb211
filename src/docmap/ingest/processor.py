"""Document pipeline: extract, chunk, embed, annotate, summarize."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

from ..clustering.similarity import adjacent_similarities
from ..embeddings.embedder import embed_chunks
from ..errors import ChunkingError, DocmapError, ExtractionError, GenerationError
from ..models import DocumentMetadata, IngestResult, ProcessedDocument, new_id
from ..prompts import SUMMARY_PROMPT
from .admission import AdmissionPolicy
from .chunker import DEFAULT_SEPARATORS, normalize_text, split_text
from .parsers import ExtractedText, extract_text

logger = logging.getLogger(__name__)


class DocumentPipeline:
    """Turns a source file into a ProcessedDocument.

    Each file is all-or-nothing: a failure in extraction, chunking or
    embedding raises and no document is produced. Summarization is optional
    and its failure is recorded on the document instead.
    """

    def __init__(
        self,
        config: dict[str, Any],
        embedder: Any,
        extractor: Callable[[Path], ExtractedText] = extract_text,
        llm: Any = None,
        policy: AdmissionPolicy | None = None,
    ):
        self.config = config
        self.embedder = embedder
        self.extractor = extractor
        self.llm = llm
        self.policy = policy or AdmissionPolicy.from_config(config)

        chunk_cfg = config.get("chunking", {})
        self.chunk_size = chunk_cfg.get("chunk_size", 500)
        self.chunk_overlap = chunk_cfg.get("chunk_overlap", 100)
        self.separators = chunk_cfg.get("separators", list(DEFAULT_SEPARATORS))
        self.summarize = config.get("summarize", True)
        self.summary_max_chars = config.get("summary_max_chars", 30000)

    async def process(self, file_path: str | Path, doc_id: str | None = None) -> ProcessedDocument:
        """Process a single file into a document with id `doc_id` (generated if omitted).

        Raises:
            ExtractionError, ChunkingError, EmbeddingError, SimilarityError:
                tagged with the file name.
        """
        path = Path(file_path)
        name = path.name

        try:
            extracted = await asyncio.to_thread(self.extractor, path)
        except DocmapError as e:
            e.name = e.name or name
            raise
        except Exception as e:
            raise ExtractionError(f"Could not read file: {e}", name=name) from e

        text = normalize_text(extracted.page_texts)
        if not text:
            raise ExtractionError("No text could be extracted", name=name)

        try:
            chunks = split_text(
                text,
                chunk_size=self.chunk_size,
                chunk_overlap=self.chunk_overlap,
                separators=self.separators,
            )
        except ChunkingError as e:
            e.name = name
            raise
        if not chunks:
            raise ChunkingError("Document produced no chunks", name=name)

        embeddings = await embed_chunks(self.embedder, chunks, name=name)

        try:
            similarity = adjacent_similarities(embeddings)
        except DocmapError as e:
            e.name = name
            raise

        doc = ProcessedDocument(
            id=doc_id or new_id(),
            chunks=chunks,
            embeddings=embeddings,
            metadata=DocumentMetadata(
                name=name,
                type=extracted.mime_type,
                page_numbers=list(range(1, extracted.page_count + 1)),
                chunk_sizes=[len(c) for c in chunks],
                semantic_similarity=similarity,
            ),
        )
        logger.info(f"Processed {name}: {len(chunks)} chunks from {extracted.page_count} page(s)")

        if self.summarize and self._can_summarize():
            await self.summarize_document(doc, text)
        return doc

    def _can_summarize(self) -> bool:
        # checked per document: the selected model (and its key) can change between files
        if self.llm is None:
            return False
        return getattr(self.llm, "available", True)

    async def summarize_document(self, doc: ProcessedDocument, text: str) -> None:
        """Fill in doc.summary; a failed call is noted in processing_errors."""
        prompt = SUMMARY_PROMPT.format(name=doc.name, text=text[:self.summary_max_chars])
        try:
            doc.summary = await self.llm.complete(prompt)
        except GenerationError as e:
            logger.warning(f"Summary failed for {doc.name}: {e}")
            doc.metadata.processing_errors.append(f"summary: {e.message}")

    async def process_batch(
        self,
        paths: list[str | Path],
        held_count: int = 0,
        ids: list[str] | None = None,
    ) -> AsyncIterator[IngestResult]:
        """Process files independently, yielding each outcome as it completes.

        Raises:
            AdmissionError: before any file is touched, if the batch would
                exceed the document ceiling.
        """
        self.policy.check(held_count, len(paths))

        ids = ids or [new_id() for _ in paths]
        tasks = [asyncio.create_task(self.process_one(p, i)) for p, i in zip(paths, ids)]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

    async def process_one(self, file_path: str | Path, doc_id: str | None = None) -> IngestResult:
        """Process a file, capturing any failure in the result."""
        doc_id = doc_id or new_id()
        try:
            doc = await self.process(file_path, doc_id)
        except DocmapError as e:
            logger.error(f"Failed to process {Path(file_path).name}: {e}")
            return IngestResult(path=str(file_path), id=doc_id, error=e)
        except Exception as e:
            logger.exception(f"Unexpected error processing {Path(file_path).name}")
            return IngestResult(path=str(file_path), id=doc_id, error=e)
        return IngestResult(path=str(file_path), id=doc_id, document=doc)
