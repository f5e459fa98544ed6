"""
Clerk

Document question answering for contracts and other legal text.

Philosophy:
- The vector store is a plain JSON file; every record is reproducible from its text
- Answers come only from retrieved chunks ("not found in documents" otherwise)
- Embedding and generation are delegated to a hosted model API

Usage:
    from clerk.common import load_config, EmbeddingService, LLMClient, VectorStore
    from clerk.indexer import Indexer
    from clerk.retriever import Retriever, Synthesizer, QueryEngine
"""

__version__ = "0.1.0"
