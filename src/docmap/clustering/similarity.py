"""Cosine similarity between chunk and document embeddings."""

import logging

import numpy as np

from ..errors import SimilarityError

logger = logging.getLogger(__name__)


def cosine(a, b) -> float:
    """Cosine similarity in [-1, 1]. A zero-norm vector scores 0.0."""
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape or va.ndim != 1:
        raise SimilarityError(f"Cannot compare vectors of shape {va.shape} and {vb.shape}")

    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        logger.debug("Zero-norm vector in cosine similarity")
        return 0.0
    return float(np.clip(np.dot(va, vb) / norm, -1.0, 1.0))


def average_embedding(embeddings: list[list[float]]) -> np.ndarray:
    """Mean vector of a document's chunk embeddings."""
    if len(embeddings) == 0:
        raise SimilarityError("Cannot average an empty embedding list")
    try:
        return np.asarray(embeddings, dtype=float).mean(axis=0)
    except ValueError as e:
        raise SimilarityError(f"Ragged embeddings: {e}") from e


def document_similarity(embeddings_a: list[list[float]], embeddings_b: list[list[float]]) -> float:
    """Cosine between the mean chunk embeddings of two documents.

    An approximation: one comparison per document pair instead of one per
    chunk pair.
    """
    return cosine(average_embedding(embeddings_a), average_embedding(embeddings_b))


def adjacent_similarities(embeddings: list[list[float]]) -> list[float]:
    """Similarity of each chunk to its predecessor; the first chunk scores 1.0."""
    if len(embeddings) == 0:
        return []
    scores = [1.0]
    for i in range(1, len(embeddings)):
        scores.append(cosine(embeddings[i], embeddings[i - 1]))
    return scores
