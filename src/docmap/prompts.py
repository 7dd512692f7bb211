"""Prompt templates for summarization and question answering."""

SUMMARY_PROMPT = """Summarize the following document for a researcher who has not read it.

Document: {name}

{text}

Write 3-5 sentences covering the main subject, the key claims or findings, and any conclusions. Do not add information that is not in the document."""

QA_SYSTEM = (
    "You are a helpful research assistant answering questions about the user's uploaded documents."
)

DOCUMENT_QA_PROMPT = """Use the following documents as your primary knowledge source, but you can also provide additional relevant information when necessary.

Document Context:
{context}

Previous Conversation:
{history}

User Question: {question}

Please provide a response that:
1. Primarily uses information from the provided documents
2. Clearly indicates when you're referencing document content
3. Can supplement with general knowledge when relevant, but prioritize document information
4. If the documents don't contain relevant information, say so and provide a general response"""

GENERAL_QA_PROMPT = """Please provide a general response based on your knowledge.

Previous Conversation:
{history}

User Question: {question}

Please provide a response that:
1. Uses your general knowledge to answer the question
2. Stays focused on the user's query
3. Does not reference any uploaded documents
4. Provides accurate and helpful information"""
