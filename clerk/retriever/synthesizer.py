"""
Synthesizer

Grounded answer generation from retrieved chunks.

Grounding is a prompting convention only: the model is told to answer from
the supplied context and to say "not found in documents" otherwise. The
reply is returned verbatim, not checked against the context.
"""

import logging
from typing import List, Optional

from ..common.llm_client import GenerationParams, LLMClient
from .retriever import ScoredRecord

logger = logging.getLogger("clerk.retriever.synthesizer")

NOT_FOUND_PHRASE = "not found in documents"

CONTEXT_SEPARATOR = "\n\n"

ANSWER_PROMPT = """Answer the QUESTION using only the CONTEXT below. Do not use outside knowledge. If the answer is not in the CONTEXT, say "{not_found}".

CONTEXT:
{context}

QUESTION:
{query}"""


def build_context(retrieved: List[ScoredRecord]) -> str:
    """Join chunk texts with a blank line, best match first."""
    return CONTEXT_SEPARATOR.join(r.text for r in retrieved)


def build_prompt(query: str, retrieved: List[ScoredRecord]) -> str:
    return ANSWER_PROMPT.format(
        not_found=NOT_FOUND_PHRASE,
        context=build_context(retrieved),
        query=query,
    )


class Synthesizer:
    """Turns a question plus retrieved chunks into an answer."""

    def __init__(self, llm_client: LLMClient):
        self._llm = llm_client

    def synthesize(
        self,
        query: str,
        retrieved: List[ScoredRecord],
        params: Optional[GenerationParams] = None,
    ) -> str:
        """
        Generate an answer grounded in ``retrieved``.

        Returns:
            Model text verbatim ("" if the model produced no candidate)

        Raises:
            GenerationFailure: the generation call failed (not retried)
        """
        prompt = build_prompt(query, retrieved)
        logger.debug("Synthesizing from %d chunk(s)", len(retrieved))
        return self._llm.generate(prompt, params or GenerationParams())
