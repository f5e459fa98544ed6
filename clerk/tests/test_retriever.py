"""
Tests for Retriever Agent

Tests ranking, top-N selection, prompt construction and the query engine.
"""

import numpy as np
import pytest
from unittest.mock import Mock

from clerk.common.errors import EmbeddingFailure, GenerationFailure, InvalidArgument
from clerk.common.llm_client import GenerationParams
from clerk.indexer import Indexer
from clerk.retriever import (
    DotProductRanker,
    QueryEngine,
    QueryOptions,
    Ranker,
    Retriever,
    Synthesizer,
    build_prompt,
    NOT_FOUND_PHRASE,
)
from clerk.retriever.retriever import ScoredRecord

from conftest import FakeEmbeddingService, FakeLLMClient, make_record


class TestDotProductRanker:
    def test_scores_each_embedding(self):
        ranker = DotProductRanker()
        scores = ranker.score_all([1.0, 2.0], [[1.0, 0.0], [0.0, 1.0], [3.0, -1.0]])
        assert scores == pytest.approx([1.0, 2.0, 1.0])

    def test_empty_candidates(self):
        assert DotProductRanker().score_all([1.0], []) == []


class TestRetriever:
    @pytest.fixture
    def retriever(self):
        return Retriever()

    def test_single_record_scenario(self, retriever):
        store = [make_record("a::0", [1.0, 0.0], "Termination requires 30 days notice.")]

        results = retriever.retrieve([1.0, 0.0], limit=1, store=store)

        assert len(results) == 1
        assert results[0].identifier == "a::0"
        assert results[0].text == "Termination requires 30 days notice."
        assert results[0].score == 1

    def test_sorted_by_non_increasing_score(self, retriever):
        store = [
            make_record("a::0", [0.1, 0.0]),
            make_record("a::1", [0.9, 0.1]),
            make_record("a::2", [-1.0, 0.0]),
            make_record("a::3", [0.5, 0.5]),
        ]

        results = retriever.retrieve([1.0, 0.0], limit=4, store=store)

        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert [r.identifier for r in results] == ["a::1", "a::3", "a::0", "a::2"]

    def test_ties_keep_store_order(self, retriever):
        store = [
            make_record("a::0", [0.0, 1.0]),
            make_record("b::0", [1.0, 0.0]),
            make_record("c::0", [0.0, 1.0]),
            make_record("d::0", [1.0, 0.0]),
        ]

        results = retriever.retrieve([1.0, 0.0], limit=4, store=store)

        assert [r.identifier for r in results] == ["b::0", "d::0", "a::0", "c::0"]

    @pytest.mark.parametrize("limit,expected", [(1, 1), (2, 2), (3, 3), (10, 3)])
    def test_returns_min_of_limit_and_store_size(self, retriever, limit, expected):
        store = [make_record(f"a::{i}", [float(i), 1.0]) for i in range(3)]

        assert len(retriever.retrieve([1.0, 1.0], limit=limit, store=store)) == expected

    def test_default_limit_is_three(self, retriever):
        store = [make_record(f"a::{i}", [float(i)]) for i in range(5)]

        assert len(retriever.retrieve([1.0], store=store)) == 3
        assert len(retriever.retrieve([1.0], limit=None, store=store)) == 3

    def test_zero_limit_returns_empty(self, retriever):
        store = [make_record("a::0", [1.0])]
        assert retriever.retrieve([1.0], limit=0, store=store) == []

    def test_numpy_integer_limit_accepted(self, retriever):
        store = [make_record(f"a::{i}", [float(i)]) for i in range(3)]

        results = retriever.retrieve([1.0], limit=np.int64(2), store=store)
        assert [r.identifier for r in results] == ["a::2", "a::1"]

    def test_empty_store_returns_empty(self, retriever):
        assert retriever.retrieve([1.0, 0.0], limit=3, store=[]) == []

    @pytest.mark.parametrize("limit", [-1, 2.5, "3", True])
    def test_invalid_limit_rejected(self, retriever, limit):
        with pytest.raises(InvalidArgument, match="limit"):
            retriever.retrieve([1.0], limit=limit, store=[make_record("a::0", [1.0])])

    def test_dimension_mismatch_rejected(self, retriever):
        store = [make_record("a::0", [1.0, 0.0]), make_record("a::1", [1.0, 0.0, 0.0])]

        with pytest.raises(InvalidArgument, match="dimension mismatch"):
            retriever.retrieve([1.0, 0.0], limit=2, store=store)

    def test_store_is_not_mutated(self, retriever):
        store = [make_record("a::0", [0.0, 1.0]), make_record("a::1", [1.0, 0.0])]
        snapshot = [make_record(r.identifier, list(r.embedding), r.text) for r in store]

        retriever.retrieve([1.0, 0.0], limit=2, store=store)

        assert store == snapshot

    def test_custom_ranker(self):
        ranker = Mock(spec=Ranker)
        ranker.score_all.return_value = [0.2, 0.8]
        store = [make_record("a::0", [1.0]), make_record("a::1", [1.0])]

        results = Retriever(ranker=ranker).retrieve([1.0], limit=1, store=store)

        assert results[0].identifier == "a::1"
        ranker.score_all.assert_called_once_with([1.0], [[1.0], [1.0]])

    def test_scored_record_to_dict_omits_embedding(self):
        scored = ScoredRecord(record=make_record("a::0", [1.0], "clause"), score=0.5)
        assert scored.to_dict() == {
            "identifier": "a::0",
            "parentIdentifier": "a",
            "text": "clause",
            "score": 0.5,
        }


class TestSynthesizer:
    @pytest.fixture
    def retrieved(self):
        return [
            ScoredRecord(make_record("a::1", [1.0], "Termination requires 30 days notice."), 0.9),
            ScoredRecord(make_record("a::0", [1.0], "Payment is due monthly."), 0.4),
        ]

    def test_prompt_joins_context_in_retrieval_order(self, retrieved):
        prompt = build_prompt("How much notice?", retrieved)

        assert "Termination requires 30 days notice.\n\nPayment is due monthly." in prompt
        assert prompt.index("CONTEXT:") < prompt.index("Termination") < prompt.index("QUESTION:")
        assert prompt.endswith("QUESTION:\nHow much notice?")

    def test_prompt_contains_not_found_instruction(self, retrieved):
        assert f'"{NOT_FOUND_PHRASE}"' in build_prompt("q", retrieved)
        assert NOT_FOUND_PHRASE == "not found in documents"

    def test_prompt_with_empty_context(self):
        prompt = build_prompt("Who signed?", [])

        assert "CONTEXT:\n\n\nQUESTION:\nWho signed?" in prompt
        assert NOT_FOUND_PHRASE in prompt

    def test_passes_generation_params(self, retrieved):
        llm = FakeLLMClient(reply="30 days.")
        params = GenerationParams(temperature=0.1, top_p=0.5, top_k=5, max_output_tokens=64)

        Synthesizer(llm).synthesize("How much notice?", retrieved, params)

        prompt, used = llm.calls[0]
        assert used == params
        assert "How much notice?" in prompt

    def test_default_params(self, retrieved):
        llm = FakeLLMClient(reply="ok")
        Synthesizer(llm).synthesize("q", retrieved)

        _, used = llm.calls[0]
        assert used == GenerationParams(temperature=0.7, top_p=0.9, top_k=40, max_output_tokens=500)

    def test_returns_reply_verbatim(self, retrieved):
        llm = FakeLLMClient(reply="  30 days, per clause 2.\n")
        assert Synthesizer(llm).synthesize("q", retrieved) == "  30 days, per clause 2.\n"

    def test_empty_reply(self, retrieved):
        assert Synthesizer(FakeLLMClient(reply="")).synthesize("q", retrieved) == ""

    def test_generation_failure_propagates(self, retrieved):
        llm = FakeLLMClient(error=RuntimeError("503 model overloaded"))

        with pytest.raises(GenerationFailure, match="overloaded"):
            Synthesizer(llm).synthesize("q", retrieved)


class TestQueryEngine:
    @pytest.fixture
    def indexed_store(self, store):
        Indexer(FakeEmbeddingService(), store).index(
            "msa",
            "Client shall make each payment within 30 days.\n\n"
            "Either party may terminate on termination notice of 30 days.\n\n"
            "All information is confidential.",
        )
        return store

    def test_answer_with_matches(self, indexed_store, fake_llm):
        engine = QueryEngine(FakeEmbeddingService(), indexed_store, Synthesizer(fake_llm))

        result = engine.answer("What is the termination notice?")

        assert result.answer == "Either party may terminate with 30 days notice."
        assert result.results[0].identifier == "msa::1"
        assert len(result.results) == 3
        prompt, _ = fake_llm.calls[0]
        assert prompt.index("terminate on termination") < prompt.index("payment within")

    def test_limit_option(self, indexed_store, fake_llm):
        engine = QueryEngine(FakeEmbeddingService(), indexed_store, Synthesizer(fake_llm))

        result = engine.answer("termination?", QueryOptions(limit=1))

        assert [r.identifier for r in result.results] == ["msa::1"]

    def test_empty_store_still_prompts(self, store, fake_llm):
        engine = QueryEngine(FakeEmbeddingService(), store, Synthesizer(fake_llm))

        result = engine.answer("Who are the parties?")

        assert result.results == []
        prompt, _ = fake_llm.calls[0]
        assert "CONTEXT:\n\n\nQUESTION:" in prompt

    def test_generation_failure_keeps_results(self, indexed_store):
        llm = FakeLLMClient(error=RuntimeError("500 internal"))
        engine = QueryEngine(FakeEmbeddingService(), indexed_store, Synthesizer(llm))

        with pytest.raises(GenerationFailure) as exc_info:
            engine.answer("termination?")

        assert [r.identifier for r in exc_info.value.results][0] == "msa::1"

    def test_embedding_failure_propagates(self, indexed_store, fake_llm):
        engine = QueryEngine(FakeEmbeddingService(fail_on="?"), indexed_store, Synthesizer(fake_llm))

        with pytest.raises(EmbeddingFailure):
            engine.answer("termination?")
        assert fake_llm.calls == []

    def test_empty_query_rejected(self, store, fake_llm):
        engine = QueryEngine(FakeEmbeddingService(), store, Synthesizer(fake_llm))

        with pytest.raises(InvalidArgument, match="query"):
            engine.answer("   ")
