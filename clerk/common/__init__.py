"""
Clerk Common Module

Shared infrastructure for the indexer, retriever and HTTP server.
"""

from .config import ClerkConfig, load_config
from .embedding_service import EmbeddingService
from .errors import (
    ClerkError,
    InvalidArgument,
    EmbeddingFailure,
    GenerationFailure,
    StorageFailure,
)
from .llm_client import LLMClient, GenerationParams
from .vector_store import ChunkRecord, VectorStore

__all__ = [
    "ClerkConfig",
    "load_config",
    "EmbeddingService",
    "LLMClient",
    "GenerationParams",
    "ChunkRecord",
    "VectorStore",
    "ClerkError",
    "InvalidArgument",
    "EmbeddingFailure",
    "GenerationFailure",
    "StorageFailure",
]
