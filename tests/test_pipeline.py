"""Tests for the document pipeline, admission policy and embedder."""

import asyncio
import threading
import time
from pathlib import Path

import pytest

from docmap.config import DEFAULT_CONFIG
from docmap.embeddings.embedder import Embedder
from docmap.errors import AdmissionError, EmbeddingError, ExtractionError, GenerationError
from docmap.ingest.admission import AdmissionPolicy
from docmap.ingest.parsers import ExtractedText
from docmap.ingest.processor import DocumentPipeline

TEXT = {
    "a.txt": ["Cats are small animals. They like to sleep.\n\nDogs are loyal animals.", "Birds can fly."],
    "b.txt": ["Stock markets rose today. Investors were pleased."],
}


def _config(**chunking):
    cfg = {**DEFAULT_CONFIG, "summarize": True}
    cfg["chunking"] = {**DEFAULT_CONFIG["chunking"], "chunk_size": 8, "chunk_overlap": 2, **chunking}
    return cfg


def _letters(text: str) -> list[float]:
    """Deterministic 26-dim letter histogram (never all zero for our inputs)."""
    vec = [0.0] * 26
    for ch in text.lower():
        if "a" <= ch <= "z":
            vec[ord(ch) - 97] += 1.0
    return vec


class FakeEmbedder:
    def __init__(self):
        self.calls = 0

    async def embed_many(self, texts):
        self.calls += 1
        return [_letters(t) for t in texts]


class FailingEmbedder:
    async def embed_many(self, texts):
        raise EmbeddingError("model unavailable")


class CountingExtractor:
    def __init__(self, fail=()):
        self.calls = []
        self.fail = set(fail)

    def __call__(self, path: Path) -> ExtractedText:
        self.calls.append(path.name)
        if path.name in self.fail:
            raise OSError("disk on fire")
        pages = TEXT.get(path.name, ["Some generic text for this file."])
        return ExtractedText(page_texts=pages, page_count=len(pages), mime_type="text/plain")


class FakeLLM:
    def __init__(self, reply="A short summary.", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def complete(self, prompt, system=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


def _collect(pipeline, paths, held_count=0):
    async def run():
        return [r async for r in pipeline.process_batch(paths, held_count=held_count)]
    return asyncio.run(run())


def test_process_keeps_arrays_aligned():
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor())
    doc = asyncio.run(pipeline.process("a.txt"))

    n = len(doc.chunks)
    assert n > 1
    assert len(doc.embeddings) == len(doc.metadata.chunk_sizes) == len(doc.metadata.semantic_similarity) == n
    assert doc.metadata.chunk_sizes == [len(c) for c in doc.chunks]
    assert doc.metadata.semantic_similarity[0] == 1.0
    assert doc.metadata.page_numbers == [1, 2]
    assert doc.metadata.name == "a.txt"
    assert doc.summary is None


def test_chunks_in_document_order():
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor())
    doc = asyncio.run(pipeline.process("a.txt"))
    assert doc.chunks[0].startswith("Cats")
    assert doc.chunks[-1].endswith("Birds can fly.")


def test_assigned_id_is_used():
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor())
    doc = asyncio.run(pipeline.process("a.txt", doc_id="fixed-id"))
    assert doc.id == "fixed-id"


def test_generated_ids_are_unique():
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor())
    ids = {asyncio.run(pipeline.process("b.txt")).id for _ in range(5)}
    assert len(ids) == 5


def test_extraction_failure_names_the_file():
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor(fail={"a.txt"}))
    with pytest.raises(ExtractionError) as exc:
        asyncio.run(pipeline.process("a.txt"))
    assert exc.value.name == "a.txt"
    assert "a.txt" in str(exc.value)
    assert "extraction" in str(exc.value)


def test_blank_document_is_rejected():
    def blank(path):
        return ExtractedText(page_texts=["   ", ""], page_count=2)

    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=blank)
    with pytest.raises(ExtractionError):
        asyncio.run(pipeline.process("empty.pdf"))


def test_embedding_failure_propagates():
    pipeline = DocumentPipeline(_config(), FailingEmbedder(), extractor=CountingExtractor())
    with pytest.raises(EmbeddingError) as exc:
        asyncio.run(pipeline.process("a.txt"))
    assert exc.value.name == "a.txt"


def test_summary_filled_by_llm():
    llm = FakeLLM()
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor(), llm=llm)
    doc = asyncio.run(pipeline.process("b.txt"))
    assert doc.summary == "A short summary."
    assert "Stock markets rose today" in llm.prompts[0]


def test_summary_failure_is_recorded_not_raised():
    llm = FakeLLM(error=GenerationError("blocked"))
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor(), llm=llm)
    doc = asyncio.run(pipeline.process("b.txt"))
    assert doc.summary is None
    assert doc.metadata.processing_errors == ["summary: blocked"]


def test_summary_disabled_in_config():
    llm = FakeLLM()
    cfg = {**_config(), "summarize": False}
    pipeline = DocumentPipeline(cfg, FakeEmbedder(), extractor=CountingExtractor(), llm=llm)
    asyncio.run(pipeline.process("b.txt"))
    assert llm.prompts == []


def test_batch_failures_are_independent():
    extractor = CountingExtractor(fail={"bad.txt"})
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=extractor)
    results = _collect(pipeline, ["a.txt", "bad.txt", "b.txt"])

    by_name = {Path(r.path).name: r for r in results}
    assert len(results) == 3
    assert by_name["a.txt"].ok and by_name["b.txt"].ok
    assert not by_name["bad.txt"].ok
    assert isinstance(by_name["bad.txt"].error, ExtractionError)
    assert by_name["bad.txt"].document is None


def test_batch_uses_given_ids():
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor())

    async def run():
        return [r async for r in pipeline.process_batch(["a.txt", "b.txt"], ids=["id-a", "id-b"])]

    results = asyncio.run(run())
    assert {r.id: r.document.id for r in results} == {"id-a": "id-a", "id-b": "id-b"}


def test_sixth_document_rejected_before_any_work():
    extractor = CountingExtractor()
    embedder = FakeEmbedder()
    pipeline = DocumentPipeline(_config(), embedder, extractor=extractor)

    with pytest.raises(AdmissionError):
        _collect(pipeline, ["a.txt"], held_count=5)
    assert extractor.calls == []
    assert embedder.calls == 0


def test_fifth_document_admitted():
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=CountingExtractor())
    results = _collect(pipeline, ["a.txt"], held_count=4)
    assert len(results) == 1 and results[0].ok


def test_whole_batch_blocked_when_over_ceiling():
    extractor = CountingExtractor()
    pipeline = DocumentPipeline(_config(), FakeEmbedder(), extractor=extractor)
    with pytest.raises(AdmissionError):
        _collect(pipeline, ["a.txt", "b.txt", "c.txt"], held_count=3)
    assert extractor.calls == []


def test_admission_policy():
    policy = AdmissionPolicy(max_documents=5, max_total_bytes=100)
    policy.check(0, 5)
    policy.check(4, 1)
    with pytest.raises(AdmissionError):
        policy.check(5, 1)
    with pytest.raises(AdmissionError):
        policy.check(2, 4)


def test_byte_budget_is_advisory():
    policy = AdmissionPolicy.from_config(DEFAULT_CONFIG)
    assert policy.max_total_bytes == 50 * 1024 * 1024

    budget = AdmissionPolicy(max_total_bytes=100).budget(150)
    assert budget.exceeded
    assert budget.remaining == 0
    assert not AdmissionPolicy(max_total_bytes=100).budget(40).exceeded
    assert AdmissionPolicy(max_total_bytes=100).budget(40).remaining == 60


class _FakeModel:
    def encode(self, text):
        return _letters(text)

    def get_sentence_embedding_dimension(self):
        return 26


class _CountingEmbedder(Embedder):
    def __init__(self, config, fail=False):
        super().__init__(config)
        self.loads = 0
        self.fail = fail
        self._count_lock = threading.Lock()

    def _load_model(self):
        with self._count_lock:
            self.loads += 1
        if self.fail:
            raise RuntimeError("no weights")
        return _FakeModel()


def test_embedder_loads_once_under_concurrent_first_use():
    embedder = _CountingEmbedder({"embedding_model": "fake-model"})

    async def run():
        return await asyncio.gather(*(embedder.embed(f"chunk {i}") for i in range(10)))

    vectors = asyncio.run(run())
    assert embedder.loads == 1
    assert vectors[3] == _letters("chunk 3")
    assert embedder.dimension == 26


def test_embedder_keeps_input_order():
    embedder = _CountingEmbedder({"embedding_model": "fake-model"})
    texts = ["alpha", "beta", "gamma", "delta"]
    vectors = asyncio.run(embedder.embed_many(texts))
    assert vectors == [_letters(t) for t in texts]


def test_embedder_prefixes_e5_passages():
    embedder = _CountingEmbedder({"embedding_model": "intfloat/e5-large-v2"})
    vector = asyncio.run(embedder.embed("zz"))
    assert vector == _letters("passage: zz")


def test_embedder_load_failure_raises():
    embedder = _CountingEmbedder({"embedding_model": "fake-model"}, fail=True)
    with pytest.raises(EmbeddingError):
        asyncio.run(embedder.embed("text"))
    assert not embedder.loaded


class SlowEmbedder:
    """Holds back any file whose text mentions 'slow'."""

    async def embed_many(self, texts):
        if any("slow" in t for t in texts):
            await asyncio.sleep(0.3)
        return [_letters(t) for t in texts]


def _named_extractor(path: Path) -> ExtractedText:
    return ExtractedText(page_texts=[f"The {path.stem} file has text."], page_count=1)


def test_batch_yields_in_completion_order():
    pipeline = DocumentPipeline(_config(), SlowEmbedder(), extractor=_named_extractor)
    results = _collect(pipeline, ["slow.txt", "fast.txt"])
    assert [Path(r.path).name for r in results] == ["fast.txt", "slow.txt"]
    assert all(r.ok for r in results)


class _DelayedModel(_FakeModel):
    def __init__(self, delays):
        self.delays = delays
        self.finished = []
        self._lock = threading.Lock()

    def encode(self, text):
        time.sleep(self.delays[text])
        with self._lock:
            self.finished.append(text)
        return _letters(text)


class _DelayedEmbedder(Embedder):
    def __init__(self, model):
        super().__init__({"embedding_model": "fake-model"})
        self.model = model

    def _load_model(self):
        return self.model


def test_embedder_reassembles_out_of_order_results():
    texts = ["alpha", "beta", "gamma", "delta"]
    model = _DelayedModel({"alpha": 0.3, "beta": 0.2, "gamma": 0.1, "delta": 0.0})
    vectors = asyncio.run(_DelayedEmbedder(model).embed_many(texts))

    assert model.finished == list(reversed(texts))
    assert vectors == [_letters(t) for t in texts]
