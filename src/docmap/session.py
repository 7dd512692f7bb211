"""A research session: ingestion, the persisted record store and the concept graph."""

import logging
import mimetypes
from collections.abc import Callable
from contextlib import aclosing
from pathlib import Path
from typing import Any

from .clustering.concepts import ConceptMapper
from .embeddings.embedder import Embedder
from .events import EventEmitter
from .ingest.admission import ByteBudget
from .ingest.parsers import extract_text
from .ingest.processor import DocumentPipeline
from .llm import LLMClient, ModelChoice
from .models import ConceptGraph, IngestResult, ResearchNote, new_id
from .qa import ChatTurn, ask_question
from .storage.records import DocumentStore, placeholder_record, to_record

logger = logging.getLogger(__name__)


class ResearchSession:
    """Owns everything one user session needs, including the LLM model choice.

    Processed documents (with their embeddings) live only for the session;
    the store keeps the flattened records.
    """

    def __init__(
        self,
        config: dict[str, Any],
        embedder: Any = None,
        llm: Any = None,
        store: DocumentStore | None = None,
        extractor: Callable = extract_text,
    ):
        self.config = config
        self.embedder = embedder or Embedder(config)
        self.llm = llm or LLMClient(config)
        self.store = store or DocumentStore(config["store_path"])
        self.mapper = ConceptMapper()
        self.events = EventEmitter()
        self.history: list[ChatTurn] = []

        self.pipeline = DocumentPipeline(config, self.embedder, extractor=extractor, llm=self.llm)

    @property
    def model(self) -> ModelChoice:
        return self.llm.get_model()

    def set_model(self, model: str | ModelChoice) -> None:
        self.llm.set_model(model)

    async def ingest(
        self,
        paths: list[str | Path],
        on_result: Callable[[IngestResult], None] | None = None,
    ) -> list[IngestResult]:
        """Ingest a batch of files.

        The whole batch is rejected with AdmissionError before any work if it
        would exceed the document ceiling. Otherwise each file succeeds or
        fails on its own; results are reported (via `on_result`) as they
        complete.
        """
        paths = [Path(p) for p in paths]
        held = self.store.count()
        self.pipeline.policy.check(held, len(paths))

        ids = []
        sizes: dict[str, int] = {}
        for path in paths:
            record_id = new_id()
            size = path.stat().st_size if path.is_file() else 0
            mime_type = mimetypes.guess_type(path.name)[0] or ""
            self.store.add(placeholder_record(record_id, path.name, mime_type, size))
            ids.append(record_id)
            sizes[record_id] = size
        self.events.emit()

        results = []
        pending = set(ids)
        try:
            async with aclosing(self.pipeline.process_batch(paths, held_count=held, ids=ids)) as batch:
                async for result in batch:
                    pending.discard(result.id)
                    if result.ok:
                        self.store.upsert(to_record(result.document, sizes[result.id]))
                        self.mapper.add_document(result.document)
                    else:
                        self.store.remove(result.id)
                    self.events.emit()
                    results.append(result)
                    if on_result:
                        on_result(result)
        finally:
            # placeholders for files that never finished must not hold a slot
            if pending:
                logger.warning(f"Ingest interrupted, dropping {len(pending)} unfinished record(s)")
                for record_id in pending:
                    self.store.remove(record_id)
                self.events.emit()

        ok = sum(1 for r in results if r.ok)
        logger.info(f"Ingested {ok}/{len(results)} file(s)")
        budget = self.budget()
        if budget.exceeded:
            logger.warning(f"Held documents use {budget.used} bytes, over the {budget.limit} byte budget")
        return results

    def remove(self, document_id: str) -> bool:
        """Drop a record from the store. The concept graph keeps the document for this session."""
        removed = self.store.remove(document_id)
        if removed:
            self.events.emit()
        return removed

    def add_note(
        self,
        document_id: str,
        content: str,
        tags: list[str] | tuple[str, ...] = (),
        chunk_index: int = 0,
    ) -> ResearchNote:
        note = ResearchNote.create(document_id, content, tags=tags, chunk_index=chunk_index)
        self.mapper.add_note(note)
        self.events.emit()
        return note

    def graph(self, include_topics: bool = False) -> ConceptGraph:
        return self.mapper.generate_concept_graph(include_topics=include_topics)

    def topics(self) -> dict[str, list[str]]:
        return self.mapper.identify_topics()

    def budget(self) -> ByteBudget:
        return self.pipeline.policy.budget(self.store.held_bytes())

    async def ask(self, question: str, document_mode: bool = True) -> dict:
        """Answer a question against the stored documents, keeping chat history."""
        result = await ask_question(
            question,
            self.store.load(),
            self.llm,
            history=tuple(self.history),
            document_mode=document_mode,
            max_context_chars=self.config.get("qa", {}).get("max_context_chars", 12000),
        )
        self.history.append(ChatTurn("user", question))
        self.history.append(ChatTurn("assistant", result["answer"]))
        return result
