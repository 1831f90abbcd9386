# triage/llm/__init__.py
from .client import TextGenerator, LLMClient, OpenAILLMClient

__all__ = ["TextGenerator", "LLMClient", "OpenAILLMClient"]
