"""
Indexer

Chunks a document, embeds every chunk, and appends the records to the
vector store with a single save. If any embedding call fails nothing is
written for that document.
"""

import logging

from ..common.embedding_service import EmbeddingService
from ..common.errors import InvalidArgument
from ..common.vector_store import VectorStore
from .chunker import MAX_CHUNK_CHARS, split_into_chunks

logger = logging.getLogger("clerk.indexer")


class Indexer:
    """Adds documents to a VectorStore."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        store: VectorStore,
        max_chunk_chars: int = MAX_CHUNK_CHARS,
    ):
        self._embedding = embedding_service
        self._store = store
        self._max_chunk_chars = max_chunk_chars

    def index(self, parent_identifier: str, full_text: str) -> int:
        """
        Index one document.

        Args:
            parent_identifier: Document id; chunk ids are ``<parent>::<n>``
            full_text: Document text

        Returns:
            Number of chunks added

        Raises:
            InvalidArgument: missing id or text, or text with no content
            EmbeddingFailure: an embedding call failed (store untouched)
            StorageFailure: the store could not be read or written
        """
        if not parent_identifier or not isinstance(parent_identifier, str):
            raise InvalidArgument("id required")
        if not full_text or not isinstance(full_text, str):
            raise InvalidArgument("text required")

        chunks = split_into_chunks(full_text, self._max_chunk_chars)
        if not chunks:
            raise InvalidArgument("text has no indexable content")

        logger.info("Embedding %d chunk(s) for %s", len(chunks), parent_identifier)
        embeddings = self._embedding.embed(chunks)

        added = self._store.append_document(parent_identifier, chunks, embeddings)

        logger.info("Indexed %s: %d chunk(s) added", parent_identifier, len(added))
        return len(added)
