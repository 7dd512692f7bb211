"""Question answering grounded in the ingested documents."""

from dataclasses import dataclass
from typing import Any

from .models import DocumentRecord
from .prompts import DOCUMENT_QA_PROMPT, GENERAL_QA_PROMPT, QA_SYSTEM


@dataclass
class ChatTurn:
    role: str  # "user" or "assistant"
    content: str


def format_history(history: list[ChatTurn] | tuple[ChatTurn, ...]) -> str:
    return "\n".join(
        f"{'User' if turn.role == 'user' else 'Assistant'}: {turn.content}" for turn in history
    )


def build_context(documents: list[DocumentRecord], max_chars: int = 12000) -> tuple[str, list[str]]:
    """Concatenate processed documents into a prompt context.

    Returns the context and the names of documents that made it in.
    """
    parts = []
    sources = []
    budget = max_chars
    for doc in documents:
        if not doc.processed or not doc.content or budget <= 0:
            continue
        content = doc.content[:budget]
        budget -= len(content)
        parts.append(f"Document: {doc.name}\nContent: {content}")
        sources.append(doc.name)
    return "\n\n".join(parts), sources


async def ask_question(
    question: str,
    documents: list[DocumentRecord],
    llm: Any,
    history: list[ChatTurn] | tuple[ChatTurn, ...] = (),
    document_mode: bool = True,
    max_context_chars: int = 12000,
) -> dict:
    """Answer a question, using the documents as context in document mode.

    Returns dict with 'answer' and 'sources' (list of document names).
    """
    if document_mode:
        context, sources = build_context(documents, max_context_chars)
        if not sources:
            return {"answer": "No processed documents to answer from. Ingest some documents first.", "sources": []}
        prompt = DOCUMENT_QA_PROMPT.format(
            context=context, history=format_history(history), question=question
        )
    else:
        sources = []
        prompt = GENERAL_QA_PROMPT.format(history=format_history(history), question=question)

    answer = await llm.complete(prompt, system=QA_SYSTEM)
    return {"answer": answer, "sources": sources}
