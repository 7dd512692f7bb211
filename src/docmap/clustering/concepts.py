"""Concept graph and topic discovery over a session's documents and notes."""

import logging

from ..errors import SimilarityError
from ..models import ConceptEdge, ConceptGraph, ConceptNode, ProcessedDocument, ResearchNote
from .similarity import cosine, document_similarity

logger = logging.getLogger(__name__)

# Documents are linked only above this average-embedding similarity
SIMILARITY_THRESHOLD = 0.5
# Chunks join a seed's topic only above this similarity
TOPIC_THRESHOLD = 0.8

NOTE_LABEL_CHARS = 30
TOPIC_LABEL_CHARS = 50


class ConceptMapper:
    """Accumulates documents and notes and derives graphs from them.

    The corpus is append-only for the lifetime of the mapper. Graphs and
    topics are recomputed from scratch on every call and never cached.
    """

    def __init__(self):
        self._documents: list[ProcessedDocument] = []
        self._notes: list[ResearchNote] = []

    @property
    def documents(self) -> tuple[ProcessedDocument, ...]:
        return tuple(self._documents)

    @property
    def notes(self) -> tuple[ResearchNote, ...]:
        return tuple(self._notes)

    def add_document(self, document: ProcessedDocument) -> None:
        if document is None:
            raise ValueError("document is required")
        self._documents.append(document)

    def add_note(self, note: ResearchNote) -> None:
        # document_id is deliberately not checked against the corpus
        if note is None:
            raise ValueError("note is required")
        self._notes.append(note)

    def generate_concept_graph(self, include_topics: bool = False) -> ConceptGraph:
        """Build the graph: document nodes, similarity edges, then note nodes.

        Args:
            include_topics: Also emit a topic node per discovered chunk cluster,
                linked to its document with a `topic` edge.

        Returns:
            ConceptGraph with nodes and edges in a stable order.
        """
        graph = ConceptGraph()

        for doc in self._documents:
            if doc.metadata is None or not doc.metadata.name:
                logger.warning(f"Skipping document {doc.id} without a name")
                continue
            graph.nodes.append(ConceptNode(
                id=doc.id,
                label=doc.metadata.name,
                type="document",
                size=len(doc.chunks or []),
            ))

        if include_topics:
            self._add_topic_nodes(graph)

        for i, doc_a in enumerate(self._documents):
            if not doc_a.embeddings:
                continue
            for doc_b in self._documents[i + 1:]:
                if not doc_b.embeddings:
                    continue
                try:
                    similarity = document_similarity(doc_a.embeddings, doc_b.embeddings)
                except SimilarityError as e:
                    logger.warning(f"Skipping pair {doc_a.id} / {doc_b.id}: {e}")
                    continue
                if similarity > SIMILARITY_THRESHOLD:
                    graph.edges.append(ConceptEdge(
                        source=doc_a.id,
                        target=doc_b.id,
                        weight=similarity,
                        type="similarity",
                    ))

        for note in self._notes:
            if not note.content:
                continue
            graph.nodes.append(ConceptNode(
                id=note.id,
                label=note.content[:NOTE_LABEL_CHARS] + "...",
                type="concept",
            ))
            graph.edges.append(ConceptEdge(
                source=note.id,
                target=note.document_id,
                weight=1.0,
                type="reference",
            ))

        return graph

    def _add_topic_nodes(self, graph: ConceptGraph) -> None:
        topics = self.identify_topics()
        for group, doc in enumerate(self._documents):
            for k, label in enumerate(topics.get(doc.id, [])):
                topic_id = f"{doc.id}#topic-{k}"
                graph.nodes.append(ConceptNode(id=topic_id, label=label, type="topic", group=group))
                graph.edges.append(ConceptEdge(source=doc.id, target=topic_id, weight=1.0, type="topic"))

    def identify_topics(self) -> dict[str, list[str]]:
        """Greedy topic labels per document id.

        Each chunk not yet assigned seeds a cluster and absorbs every later
        unassigned chunk more similar to the seed than TOPIC_THRESHOLD. The
        result depends on chunk order and is not an optimal clustering.
        """
        topics: dict[str, list[str]] = {}
        for doc in self._documents:
            if len(doc.chunks) != len(doc.embeddings):
                logger.warning(
                    f"Skipping topics for {doc.id}: {len(doc.chunks)} chunks, "
                    f"{len(doc.embeddings)} embeddings"
                )
                continue
            try:
                topics[doc.id] = cluster_chunks(doc.chunks, doc.embeddings)
            except SimilarityError as e:
                logger.warning(f"Skipping topics for {doc.id}: {e}")
        return topics


def cluster_chunks(chunks: list[str], embeddings: list[list[float]]) -> list[str]:
    """Single-pass greedy clustering; returns one label per cluster, in seed order."""
    labels = []
    assigned: set[int] = set()

    for i in range(len(embeddings)):
        if i in assigned:
            continue
        assigned.add(i)
        for j in range(i + 1, len(embeddings)):
            if j not in assigned and cosine(embeddings[i], embeddings[j]) > TOPIC_THRESHOLD:
                assigned.add(j)
        labels.append(topic_label(chunks[i]))

    return labels


def topic_label(chunk: str) -> str:
    """First sentence of the chunk, cut to 50 characters."""
    sentence = chunk.split(".")[0].strip()
    if len(sentence) > TOPIC_LABEL_CHARS:
        return sentence[:TOPIC_LABEL_CHARS - 3] + "..."
    return sentence
