"""
Embedding Service

Turns text into fixed-length vectors by delegating to an embedding provider:
- google: Gemini embed_content (default)
- openai: embeddings.create
- local: fastembed, on-device

No retry, no cache. Every provider error surfaces as EmbeddingFailure.
"""

import logging
from typing import List, Optional

import numpy as np

from .errors import EmbeddingFailure, error_details

logger = logging.getLogger("clerk.common.embedding_service")


class EmbeddingService:
    """Text-to-vector client for the configured provider."""

    def __init__(
        self,
        provider: str = "google",
        model: str = "models/text-embedding-004",
        api_key: Optional[str] = None,
    ):
        """
        Initialize embedding service.

        Args:
            provider: google, openai, or local
            model: Provider-specific model name
            api_key: API key for hosted providers (ignored for local)
        """
        self.provider = (provider or "google").lower()
        self.model = model
        self._client = None
        self._init_client(api_key)

    def _init_client(self, api_key: Optional[str]) -> None:
        if self.provider == "local":
            try:
                from fastembed import TextEmbedding

                self._client = TextEmbedding(model_name=self.model)
                logger.info("Embedding provider: local fastembed (%s)", self.model)
            except ImportError:
                logger.warning("fastembed package not installed")
            except Exception as e:
                logger.warning("Failed to load fastembed model %s: %s", self.model, e)
            return

        if not api_key:
            logger.info("%s API key not provided, embedding service unavailable", self.provider)
            return

        if self.provider == "google":
            try:
                import google.generativeai as genai

                genai.configure(api_key=api_key)
                self._client = genai
            except ImportError:
                logger.warning("google-generativeai package not installed")
            return

        if self.provider == "openai":
            try:
                from openai import OpenAI

                self._client = OpenAI(api_key=api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        logger.warning("Unsupported embedding provider: %s", self.provider)

    @classmethod
    def from_config(cls, embedding_config, llm_config) -> "EmbeddingService":
        """Build from config; hosted providers reuse the LLM section's API keys."""
        api_key = getattr(llm_config, f"{embedding_config.provider}_api_key", "") or None
        return cls(
            provider=embedding_config.provider,
            model=embedding_config.model,
            api_key=api_key,
        )

    @property
    def is_available(self) -> bool:
        """Check if embedding service is available"""
        return self._client is not None

    def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a list of texts, one request per text.

        Args:
            texts: List of strings to embed

        Returns:
            List of embedding vectors, in input order

        Raises:
            EmbeddingFailure: service unavailable or any provider error
        """
        return [self.embed_single(text) for text in texts]

    def embed_single(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: String to embed

        Returns:
            Embedding vector as plain floats
        """
        if not self.is_available:
            raise EmbeddingFailure(f"Embedding service is not available (provider: {self.provider})")

        try:
            vector = self._embed(text)
        except Exception as e:
            logger.error("Embedding call failed (%s): %s", self.provider, e)
            raise EmbeddingFailure(f"Embedding failed: {e}", details=error_details(e)) from e

        if vector is None or len(vector) == 0:
            raise EmbeddingFailure("Embedding service returned an empty vector")
        return [float(v) for v in vector]

    def _embed(self, text: str):
        if self.provider == "google":
            result = self._client.embed_content(model=self.model, content=text)
            return result["embedding"]

        if self.provider == "openai":
            response = self._client.embeddings.create(model=self.model, input=[text])
            return response.data[0].embedding

        if self.provider == "local":
            vectors = list(self._client.embed([text]))
            return np.asarray(vectors[0]).tolist()

        raise EmbeddingFailure(f"Unsupported embedding provider: {self.provider}")
