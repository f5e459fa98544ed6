"""
Indexer - Document Ingestion

Turns (id, text) pairs into embedded chunk records.

Pipeline:
1. Split text on blank lines, truncate each chunk to 2000 characters
2. Embed every chunk via the embedding service
3. Append all records to the vector store in one save
"""

from .chunker import split_into_chunks, MAX_CHUNK_CHARS
from .indexer import Indexer

__all__ = [
    "Indexer",
    "split_into_chunks",
    "MAX_CHUNK_CHARS",
]
