"""
Query Engine

Answers a question end to end:
1. Embed the question
2. Load the vector store snapshot
3. Rank and keep the top-N chunks
4. Synthesize a grounded answer

If generation fails after retrieval succeeded, the GenerationFailure carries
the retrieved chunks so callers can still show them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.embedding_service import EmbeddingService
from ..common.errors import GenerationFailure, InvalidArgument
from ..common.llm_client import GenerationParams
from ..common.vector_store import VectorStore
from .retriever import DEFAULT_LIMIT, Retriever, ScoredRecord
from .synthesizer import Synthesizer

logger = logging.getLogger("clerk.retriever.query_engine")


@dataclass
class QueryOptions:
    """Every option a query accepts, with its default"""
    limit: int = DEFAULT_LIMIT
    generation: GenerationParams = field(default_factory=GenerationParams)


@dataclass
class QueryAnswer:
    """Answer text plus the chunks it was grounded on"""
    answer: str
    results: List[ScoredRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "results": [r.to_dict() for r in self.results],
        }


class QueryEngine:
    """Retrieval-augmented question answering over one vector store."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        store: VectorStore,
        synthesizer: Synthesizer,
        retriever: Optional[Retriever] = None,
    ):
        self._embedding = embedding_service
        self._store = store
        self._synthesizer = synthesizer
        self._retriever = retriever or Retriever()

    def search(self, query: str, limit: int = DEFAULT_LIMIT) -> List[ScoredRecord]:
        """Embed ``query`` and return the closest stored chunks."""
        if not query or not query.strip():
            raise InvalidArgument("query required")

        query_embedding = self._embedding.embed_single(query)
        records = self._store.load()
        return self._retriever.retrieve(query_embedding, limit=limit, store=records)

    def answer(self, query: str, options: Optional[QueryOptions] = None) -> QueryAnswer:
        """
        Answer ``query`` from the indexed documents.

        Raises:
            InvalidArgument: empty query or bad options
            EmbeddingFailure: the query could not be embedded
            StorageFailure: the store could not be read
            GenerationFailure: generation failed; ``.results`` holds the matches
        """
        options = options or QueryOptions()
        results = self.search(query, options.limit)
        logger.info("Query matched %d chunk(s)", len(results))

        try:
            answer = self._synthesizer.synthesize(query, results, options.generation)
        except GenerationFailure as e:
            raise GenerationFailure(e.message, details=e.details, results=results) from e

        return QueryAnswer(answer=answer, results=results)
