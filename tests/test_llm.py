"""Tests for the LLM client and question answering."""

import asyncio

import pytest

from docmap.config import DEFAULT_CONFIG
from docmap.errors import GenerationError
from docmap.llm import LLMClient, ModelChoice, parse_model
from docmap.models import DocumentRecord
from docmap.qa import ChatTurn, ask_question, build_context


def _record(name, content="Body text.", processed=True):
    return DocumentRecord(id=name, name=name, type="text/plain", size=len(content),
                          content=content, timestamp="2026-01-01T00:00:00", processed=processed)


class EchoLLM:
    def __init__(self, reply="answer"):
        self.reply = reply
        self.calls = []

    async def complete(self, prompt, system=None):
        self.calls.append((prompt, system))
        return self.reply


def test_parse_model():
    assert parse_model("claude") is ModelChoice.CLAUDE
    assert parse_model(ModelChoice.DEEPSEEK) is ModelChoice.DEEPSEEK
    with pytest.raises(ValueError):
        parse_model("gpt-17")


def test_client_model_selection():
    client = LLMClient(DEFAULT_CONFIG)
    assert client.get_model() is ModelChoice.CLAUDE
    assert client.model_name == DEFAULT_CONFIG["llm"]["claude_model"]
    client.set_model("deepseek")
    assert client.get_model() is ModelChoice.DEEPSEEK
    assert client.model_name == DEFAULT_CONFIG["llm"]["deepseek_model"]


def test_missing_key_is_generation_error():
    client = LLMClient(dict(DEFAULT_CONFIG), model="claude")
    assert not client.available
    with pytest.raises(GenerationError):
        asyncio.run(client.complete("hello"))


def test_available_follows_selected_backend():
    client = LLMClient({**DEFAULT_CONFIG, "openrouter_api_key": "or-key"})
    assert not client.available
    client.set_model("deepseek")
    assert client.available


def test_build_context_skips_unprocessed_and_respects_budget():
    docs = [_record("a.txt", "x" * 30), _record("pending.txt", processed=False), _record("b.txt", "y" * 30)]
    context, sources = build_context(docs, max_chars=40)
    assert sources == ["a.txt", "b.txt"]
    assert "pending.txt" not in context
    assert context.count("y") == 10


def test_ask_in_document_mode():
    llm = EchoLLM()
    history = (ChatTurn("user", "hi"), ChatTurn("assistant", "hello"))
    result = asyncio.run(ask_question("What is it about?", [_record("a.txt")], llm, history=history))
    assert result == {"answer": "answer", "sources": ["a.txt"]}
    prompt, system = llm.calls[0]
    assert "Document: a.txt\nContent: Body text." in prompt
    assert "User: hi\nAssistant: hello" in prompt
    assert system


def test_ask_without_documents_skips_llm():
    llm = EchoLLM()
    result = asyncio.run(ask_question("Anything?", [], llm))
    assert result["sources"] == []
    assert llm.calls == []


def test_ask_in_general_mode():
    llm = EchoLLM()
    result = asyncio.run(ask_question("Capital of France?", [_record("a.txt")], llm, document_mode=False))
    assert result["sources"] == []
    assert "Document:" not in llm.calls[0][0]
