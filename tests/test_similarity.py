"""Tests for cosine similarity helpers."""

import random

import pytest

from docmap.clustering.similarity import (
    adjacent_similarities,
    average_embedding,
    cosine,
    document_similarity,
)
from docmap.errors import SimilarityError


def test_cosine_symmetric_and_bounded():
    rng = random.Random(7)
    for _ in range(50):
        a = [rng.uniform(-1, 1) for _ in range(8)]
        b = [rng.uniform(-1, 1) for _ in range(8)]
        assert cosine(a, b) == cosine(b, a)
        assert -1.0 <= cosine(a, b) <= 1.0


def test_cosine_self_is_one():
    assert cosine([0.3, -2.0, 5.5], [0.3, -2.0, 5.5]) == pytest.approx(1.0)


def test_cosine_known_values():
    assert cosine([1, 0], [0, 1]) == 0.0
    assert cosine([1, 0], [-1, 0]) == pytest.approx(-1.0)
    assert cosine([1, 0, 0, 0], [1, 1, 1, 1]) == 0.5


def test_zero_vector_returns_sentinel():
    assert cosine([0, 0, 0], [1, 2, 3]) == 0.0
    assert cosine([0, 0], [0, 0]) == 0.0


def test_mismatched_dimensions_raise():
    with pytest.raises(SimilarityError):
        cosine([1, 2], [1, 2, 3])


def test_average_embedding():
    avg = average_embedding([[1, 0], [0, 1], [2, 2]])
    assert list(avg) == [1.0, 1.0]
    with pytest.raises(SimilarityError):
        average_embedding([])


def test_document_similarity_uses_mean_vectors():
    a = [[1, 0], [1, 0], [1, 0]]
    b = [[0.6, 0.8], [0.6, 0.8]]
    assert document_similarity(a, b) == pytest.approx(0.6)
    assert document_similarity(a, b) == document_similarity(a, [[0.6, 0.8]])


def test_adjacent_similarities():
    scores = adjacent_similarities([[1, 0], [1, 0], [0, 1]])
    assert scores[0] == 1.0
    assert scores[1] == pytest.approx(1.0)
    assert scores[2] == 0.0
    assert adjacent_similarities([]) == []
