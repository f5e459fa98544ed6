"""
Summarizer

Two ways to summarize a contract:
- LLM: asks the generation model for a JSON summary (raw text kept when the
  reply is not valid JSON)
- Heuristic: offline extractive summary from legal keyword density plus
  clause detection
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.errors import InvalidArgument
from ..common.llm_client import GenerationParams, LLMClient
from ..common.llm_utils import extract_json_object

logger = logging.getLogger("clerk.retriever.summarizer")

# Long documents are cut before prompting
MAX_SUMMARY_INPUT_CHARS = 30000

SUMMARY_PROMPT = """You are a legal assistant. Summarize the contract below.

Respond with ONLY a JSON object with these keys:
- "overview": two or three sentences on what the document is
- "parties": list of the parties
- "effective_date": the effective date, or null
- "term": duration and renewal terms, or null
- "payment": payment obligations, or null
- "termination": how and when the agreement can be terminated, or null
- "obligations": list of key obligations
- "risks": list of clauses a reviewer should look at closely

Use only information in the document. Use null or [] when something is not stated.

DOCUMENT:
{text}"""

LEGAL_KEYWORDS = [
    "agreement", "party", "parties", "shall", "must", "obligation", "liable",
    "liability", "indemnify", "terminate", "termination", "notice", "breach",
    "payment", "fee", "confidential", "warrant", "govern", "jurisdiction",
    "effective", "term", "renew", "dispute", "arbitration", "damages",
]

CLAUSE_PATTERNS = {
    "termination": re.compile(r"\bterminat\w*", re.IGNORECASE),
    "payment": re.compile(r"\b(payment|pay|fees?|invoice\w*)\b", re.IGNORECASE),
    "confidentiality": re.compile(r"\bconfidential\w*", re.IGNORECASE),
    "liability": re.compile(r"\b(liabilit\w*|liable)\b", re.IGNORECASE),
    "indemnification": re.compile(r"\bindemni\w*", re.IGNORECASE),
    "governing_law": re.compile(r"\b(governing law|governed by|jurisdiction)\b", re.IGNORECASE),
    "term": re.compile(r"\b(term of|initial term|renew\w*)\b", re.IGNORECASE),
}

SENTENCE_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9\"'(])")
WORD_RE = re.compile(r"[A-Za-z]+")


@dataclass
class LLMSummary:
    """Parsed JSON summary, or the raw reply when it was not JSON"""
    summary: Optional[Dict[str, Any]] = None
    raw: str = ""

    def to_dict(self) -> Dict[str, Any]:
        if self.summary is not None:
            return {"summary": self.summary}
        return {"raw": self.raw}


@dataclass
class HeuristicSummary:
    """Offline extractive summary"""
    key_sentences: List[str] = field(default_factory=list)
    clauses: Dict[str, str] = field(default_factory=dict)
    word_count: int = 0
    sentence_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key_sentences": self.key_sentences,
            "clauses": self.clauses,
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
        }


class Summarizer:
    """Document summaries via the generation model or offline heuristics."""

    def __init__(self, llm_client: LLMClient):
        self._llm = llm_client

    def summarize_with_llm(self, text: str, params: Optional[GenerationParams] = None) -> LLMSummary:
        """
        Ask the model for a structured summary of ``text``.

        Raises:
            InvalidArgument: empty text
            GenerationFailure: the generation call failed
        """
        if not text or not text.strip():
            raise InvalidArgument("text required")

        if len(text) > MAX_SUMMARY_INPUT_CHARS:
            logger.info("Summary input truncated from %d to %d chars", len(text), MAX_SUMMARY_INPUT_CHARS)
            text = text[:MAX_SUMMARY_INPUT_CHARS]

        prompt = SUMMARY_PROMPT.format(text=text)
        raw = self._llm.generate(prompt, params or GenerationParams.for_summary())

        parsed = extract_json_object(raw)
        if parsed is None:
            logger.warning("LLM summary was not valid JSON, returning raw text")
        return LLMSummary(summary=parsed, raw=raw)

    def summarize_heuristic(self, text: str, max_sentences: int = 5) -> HeuristicSummary:
        return summarize_heuristic(text, max_sentences)


def split_sentences(text: str) -> List[str]:
    flattened = " ".join(text.split())
    return [s.strip() for s in SENTENCE_RE.split(flattened) if s.strip()]


def _keyword_score(sentence: str) -> float:
    words = [w.lower() for w in WORD_RE.findall(sentence)]
    if not words:
        return 0.0
    hits = sum(1 for w in words if any(w.startswith(k) for k in LEGAL_KEYWORDS))
    # Favour dense sentences without rewarding very short fragments
    return hits / (len(words) ** 0.5)


def summarize_heuristic(text: str, max_sentences: int = 5) -> HeuristicSummary:
    """
    Extractive summary without any model call.

    Picks the ``max_sentences`` sentences with the highest legal keyword
    density (kept in document order) and the first sentence mentioning each
    known clause type.

    Raises:
        InvalidArgument: empty text or non-positive max_sentences
    """
    if not text or not text.strip():
        raise InvalidArgument("text required")
    if max_sentences < 1:
        raise InvalidArgument("max_sentences must be positive")

    sentences = split_sentences(text)
    scored = sorted(
        range(len(sentences)),
        key=lambda i: _keyword_score(sentences[i]),
        reverse=True,
    )
    keep = sorted(i for i in scored[:max_sentences] if _keyword_score(sentences[i]) > 0)

    clauses = {}
    for name, pattern in CLAUSE_PATTERNS.items():
        for sentence in sentences:
            if pattern.search(sentence):
                clauses[name] = sentence
                break

    return HeuristicSummary(
        key_sentences=[sentences[i] for i in keep],
        clauses=clauses,
        word_count=len(text.split()),
        sentence_count=len(sentences),
    )
