"""
Provider-agnostic generation client for Clerk.

Supports Google Gemini, Anthropic, and OpenAI behind one text-generation
call. Single attempt per call: no retry, no backoff, no caching.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .errors import GenerationFailure, error_details

logger = logging.getLogger("clerk.common.llm_client")

ANSWER_MAX_OUTPUT_TOKENS = 500
SUMMARY_MAX_OUTPUT_TOKENS = 800


@dataclass(frozen=True)
class GenerationParams:
    """Sampling parameters passed to the generation model."""
    temperature: float = 0.7
    top_p: float = 0.9
    top_k: int = 40
    max_output_tokens: int = ANSWER_MAX_OUTPUT_TOKENS

    @classmethod
    def for_summary(cls, **overrides) -> "GenerationParams":
        return replace(cls(max_output_tokens=SUMMARY_MAX_OUTPUT_TOKENS), **overrides)


class LLMClient:
    """Unified text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "google",
        model: str = "",
        google_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "google").lower()
        self.model = model
        self._client = None

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai.GenerativeModel(model_name=self.model)
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.Anthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "openai":
            if not openai_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import OpenAI

                self._client = OpenAI(api_key=openai_api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @classmethod
    def from_config(cls, llm_config) -> "LLMClient":
        return cls(
            provider=llm_config.provider,
            model=llm_config.model,
            google_api_key=llm_config.google_api_key or None,
            anthropic_api_key=llm_config.anthropic_api_key or None,
            openai_api_key=llm_config.openai_api_key or None,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(self, prompt: str, params: Optional[GenerationParams] = None) -> str:
        """Return the model's text for ``prompt``, or "" when it produced no candidate.

        Raises:
            GenerationFailure: client unavailable, or any transport/API error
        """
        if not self.is_available:
            raise GenerationFailure(f"LLM client is not available (provider: {self.provider})")

        params = params or GenerationParams()
        try:
            return self._generate(prompt, params)
        except GenerationFailure:
            raise
        except Exception as e:
            logger.error("Generation call failed (%s): %s", self.provider, e)
            raise GenerationFailure(f"Generation failed: {e}", details=error_details(e)) from e

    def _generate(self, prompt: str, params: GenerationParams) -> str:
        if self.provider == "google":
            response = self._client.generate_content(
                prompt,
                generation_config={
                    "temperature": params.temperature,
                    "top_p": params.top_p,
                    "top_k": params.top_k,
                    "max_output_tokens": params.max_output_tokens,
                },
            )
            if not response.candidates:
                return ""
            parts = response.candidates[0].content.parts
            return "".join(getattr(part, "text", "") for part in parts)

        if self.provider == "anthropic":
            response = self._client.messages.create(
                model=self.model,
                max_tokens=params.max_output_tokens,
                temperature=params.temperature,
                top_p=params.top_p,
                top_k=params.top_k,
                messages=[{"role": "user", "content": prompt}],
            )
            if not response.content:
                return ""
            return response.content[0].text

        if self.provider == "openai":
            # Chat completions have no top_k
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=params.max_output_tokens,
                temperature=params.temperature,
                top_p=params.top_p,
                messages=[{"role": "user", "content": prompt}],
            )
            if not response.choices:
                return ""
            return response.choices[0].message.content or ""

        raise GenerationFailure(f"Unsupported LLM provider: {self.provider}")

