# triage/llm/client.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Optional

from openai import OpenAI, OpenAIError

from triage.config import get_settings
from triage.errors import GenerationError

logger = logging.getLogger(__name__)


class TextGenerator(ABC):
    """
    The only thing the triage core needs from a model: prompt in, text out.
    """

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """
        Returns the raw completion text.
        Raises GenerationError on transport or service failure.
        """
        ...


class LLMClient(TextGenerator):
    """
    Chat-style abstraction so we can swap providers if needed.
    """

    @abstractmethod
    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.2,
        model: Optional[str] = None,
    ) -> str:
        """
        messages: list of {"role": "system"|"user"|"assistant", "content": "..."}
        returns: assistant content as a string
        """
        ...

    def generate(self, prompt: str) -> str:
        return self.chat([{"role": "user", "content": prompt}])


class OpenAILLMClient(LLMClient):
    """
    OpenAI implementation using the official Python client.
    Works against any OpenAI-compatible endpoint via OPENAI_BASE_URL.
    """

    def __init__(self, model: Optional[str] = None):
        settings = get_settings()
        if not settings.openai_api_key:
            raise RuntimeError(
                "OPENAI_API_KEY is not set in environment (.env)."
            )

        self.client = OpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.generation_timeout_seconds,
            max_retries=0,
        )
        self.default_model = model or settings.llm_model
        self.default_temperature = settings.llm_temperature

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=model or self.default_model,
                messages=messages,
                temperature=self.default_temperature if temperature is None else temperature,
            )
        except OpenAIError as exc:
            logger.error("Generation request failed: %s", exc)
            raise GenerationError(f"Generation request failed: {exc}") from exc

        if not completion.choices:
            raise GenerationError("Generation service returned no choices")
        content = completion.choices[0].message.content
        if not content or not content.strip():
            raise GenerationError("Generation service returned an empty completion")
        return content
