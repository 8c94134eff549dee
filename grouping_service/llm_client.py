"""
Tab Grouper - Completion Clients

Thin adapters over the upstream completion services. Each returns the
provider's raw response; turning that into text is left to the
extraction stage, which copes with every shape these clients produce.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol

import dspy
from google import genai
from google.genai import types

from config import LLMSettings
from .models import CompletionRequest

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Anything that can turn a CompletionRequest into a raw response."""

    async def generate(self, request: CompletionRequest) -> Any:
        ...


class GeminiCompletionClient:
    """Google Gemini via the google-genai SDK. Responses expose ``.text`` and ``.candidates``."""

    def __init__(self, api_key: Optional[str], temperature: Optional[float] = None):
        self.client = genai.Client(api_key=api_key)
        self.temperature = temperature

    async def generate(self, request: CompletionRequest) -> Any:
        config = None
        if self.temperature is not None:
            config = types.GenerateContentConfig(temperature=self.temperature)

        return await self.client.aio.models.generate_content(
            model=request.model,
            contents=request.prompt,
            config=config,
        )


class DspyCompletionClient:
    """
    Any OpenAI-compatible endpoint through a ``dspy.LM``.

    The LM returns a list of completions; the first one is handed back as a
    bare string.
    """

    def __init__(
        self,
        model_name: str,
        api_base: Optional[str],
        api_key: str,
        timeout: float = 60.0,
        temperature: Optional[float] = None,
    ):
        lm_kwargs = {
            "api_base": api_base,
            "api_key": api_key,
            "max_tokens": 1024,
            "timeout": timeout,
        }
        if temperature is not None:
            lm_kwargs["temperature"] = temperature
        self.lm = dspy.LM(model=f"openai/{model_name}", **lm_kwargs)

    async def generate(self, request: CompletionRequest) -> Any:
        outputs = await asyncio.to_thread(self.lm, request.prompt)
        if not outputs:
            raise RuntimeError("Completion model returned no outputs")
        return outputs[0]


def build_completion_client(settings: LLMSettings) -> CompletionClient:
    """Create the client selected by LLM_PROVIDER."""
    if settings.provider == "openai":
        logger.info(f"Using OpenAI-compatible endpoint {settings.api_base} via DSPy")
        return DspyCompletionClient(
            model_name=settings.model_name,
            api_base=settings.api_base,
            api_key=settings.openai_api_key,
            timeout=settings.timeout,
            temperature=settings.temperature,
        )

    logger.info(f"Using Gemini, API key loaded: {'YES' if settings.api_key else 'NO'}")
    return GeminiCompletionClient(api_key=settings.api_key, temperature=settings.temperature)
