"""
Retriever

Scores every stored chunk against a query embedding and returns the top-N.
Ordering is by descending score; equal scores keep store order.
"""

import logging
import numbers
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..common.errors import InvalidArgument
from ..common.vector_store import ChunkRecord
from .ranker import DotProductRanker, Ranker

logger = logging.getLogger("clerk.retriever.retriever")

DEFAULT_LIMIT = 3


@dataclass
class ScoredRecord:
    """A chunk record with its similarity score for one query"""
    record: ChunkRecord
    score: float

    @property
    def identifier(self) -> str:
        return self.record.identifier

    @property
    def parent_identifier(self) -> str:
        return self.record.parent_identifier

    @property
    def text(self) -> str:
        return self.record.text

    def to_dict(self) -> Dict[str, Any]:
        """API shape; the embedding is left out"""
        return {
            "identifier": self.record.identifier,
            "parentIdentifier": self.record.parent_identifier,
            "text": self.record.text,
            "score": self.score,
        }


class Retriever:
    """Top-N retrieval over an in-memory snapshot of the vector store."""

    def __init__(self, ranker: Optional[Ranker] = None):
        self._ranker = ranker or DotProductRanker()

    def retrieve(
        self,
        query_embedding: Sequence[float],
        limit: Optional[int] = DEFAULT_LIMIT,
        store: Sequence[ChunkRecord] = (),
    ) -> List[ScoredRecord]:
        """
        Rank ``store`` against ``query_embedding``.

        Args:
            query_embedding: Query vector, same dimension as stored embeddings
            limit: Maximum results (None -> 3, 0 -> empty)
            store: Records to rank; never mutated

        Returns:
            min(limit, len(store)) ScoredRecords, best first

        Raises:
            InvalidArgument: bad limit, empty query, or dimension mismatch
        """
        limit = _validate_limit(limit)
        if limit == 0 or not store:
            return []

        if query_embedding is None or len(query_embedding) == 0:
            raise InvalidArgument("query embedding required")

        dim = len(query_embedding)
        for record in store:
            if len(record.embedding) != dim:
                raise InvalidArgument(
                    f"Embedding dimension mismatch: query has {dim}, "
                    f"{record.identifier} has {len(record.embedding)}"
                )

        scores = self._ranker.score_all(query_embedding, [r.embedding for r in store])
        scored = [ScoredRecord(record=r, score=float(s)) for r, s in zip(store, scores)]

        # sorted() is stable, so ties keep store order
        ranked = sorted(scored, key=lambda s: s.score, reverse=True)
        top = ranked[:limit]

        logger.debug("Retrieved %d of %d record(s)", len(top), len(store))
        return top


def _validate_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    # numpy integers are Integral; bool is rejected even though it is an int
    if isinstance(limit, bool) or not isinstance(limit, numbers.Integral):
        raise InvalidArgument(f"limit must be an integer, got {limit!r}")
    if limit < 0:
        raise InvalidArgument(f"limit must not be negative, got {limit}")
    return int(limit)
