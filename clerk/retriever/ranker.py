"""
Ranking strategies.

A Ranker scores every stored embedding against a query in one call. The
default is an exact dot-product scan; an approximate nearest-neighbour
structure can replace it without changing the Retriever.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np


class Ranker(ABC):
    """Scores all candidate embeddings against a query embedding."""

    @abstractmethod
    def score_all(self, query: Sequence[float], embeddings: List[Sequence[float]]) -> List[float]:
        """Return one score per embedding, in input order (higher is closer)."""


class DotProductRanker(Ranker):
    """Exact linear scan: score = dot(query, embedding)."""

    def score_all(self, query: Sequence[float], embeddings: List[Sequence[float]]) -> List[float]:
        if not embeddings:
            return []

        matrix = np.asarray(embeddings, dtype=float)
        query_vec = np.asarray(query, dtype=float)

        # Batch dot product, one row per stored chunk
        return np.dot(matrix, query_vec).tolist()
