"""
OpenAI adapter for the ``LLM`` protocol.
"""

import logging
from typing import Optional

from openai import OpenAI

from ..core.config import Settings, get_settings


logger = logging.getLogger(__name__)


class OpenAIChatLLM:
    """Single-turn chat completion exposed as ``generate(prompt) -> str``."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._client = client or OpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature

    def generate(self, prompt: str) -> str:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
        )
        content = response.choices[0].message.content or ""
        logger.debug("LLM %s returned %d characters", self.model, len(content))
        return content.strip()
