"""
Retriever - Grounded Question Answering

Ranks stored chunks against a question and synthesizes an answer with the
generation model.

Key Components:
- Ranker: scores every stored embedding (dot product by default)
- Retriever: stable top-N selection
- Synthesizer: context block + grounding prompt + generation call
- QueryEngine: embed -> load -> retrieve -> synthesize
- Summarizer: LLM and heuristic document summaries
"""

from .ranker import Ranker, DotProductRanker
from .retriever import Retriever, ScoredRecord, DEFAULT_LIMIT
from .synthesizer import Synthesizer, build_prompt, NOT_FOUND_PHRASE
from .query_engine import QueryEngine, QueryOptions, QueryAnswer
from .summarizer import Summarizer, LLMSummary, HeuristicSummary, summarize_heuristic

__all__ = [
    "Ranker",
    "DotProductRanker",
    "Retriever",
    "ScoredRecord",
    "DEFAULT_LIMIT",
    "Synthesizer",
    "build_prompt",
    "NOT_FOUND_PHRASE",
    "QueryEngine",
    "QueryOptions",
    "QueryAnswer",
    "Summarizer",
    "LLMSummary",
    "HeuristicSummary",
    "summarize_heuristic",
]
