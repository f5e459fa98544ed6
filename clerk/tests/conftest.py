"""Shared fakes for Clerk tests. No test talks to a real model API."""

from typing import List, Optional

import pytest

from clerk.common.embedding_service import EmbeddingService
from clerk.common.llm_client import GenerationParams, LLMClient
from clerk.common.vector_store import ChunkRecord, VectorStore


# Topic axes for the fake embedding: one dimension per keyword
TOPICS = ["terminat", "payment", "confidential"]


class FakeEmbeddingService(EmbeddingService):
    """Keyword-count vectors; optionally fails on texts containing ``fail_on``."""

    def __init__(self, fail_on: Optional[str] = None, dim_override: Optional[int] = None):
        self.provider = "fake"
        self.model = "fake-embedding"
        self._client = object()
        self.fail_on = fail_on
        self.dim_override = dim_override
        self.calls: List[str] = []

    def _embed(self, text: str):
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise RuntimeError("429 quota exceeded")
        lowered = text.lower()
        vector = [float(lowered.count(topic)) for topic in TOPICS] + [0.1]
        if self.dim_override:
            vector = vector[:self.dim_override]
        return vector


class FakeLLMClient(LLMClient):
    """Returns a canned reply and records every prompt and parameter set."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.provider = "fake"
        self.model = "fake-llm"
        self._client = object()
        self.reply = reply
        self.error = error
        self.calls: List[tuple] = []

    def _generate(self, prompt: str, params: GenerationParams) -> str:
        self.calls.append((prompt, params))
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def fake_embedding():
    return FakeEmbeddingService()


@pytest.fixture
def fake_llm():
    return FakeLLMClient(reply="Either party may terminate with 30 days notice.")


@pytest.fixture
def store(tmp_path):
    return VectorStore(tmp_path / "vector_store.json")


def make_record(identifier: str, embedding: List[float], text: Optional[str] = None) -> ChunkRecord:
    parent = identifier.split("::")[0]
    return ChunkRecord(
        identifier=identifier,
        parent_identifier=parent,
        text=text or f"text of {identifier}",
        embedding=embedding,
    )
