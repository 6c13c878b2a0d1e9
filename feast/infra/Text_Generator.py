"""Generative text collaborator: one prompt in, raw (untrusted) text out."""
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from feast.utilities.config import LLM_API_KEY, LLM_BASE_URL, LLM_MODEL
from feast.utilities.errors import SourceTierError

logger = logging.getLogger(__name__)


def _get_openai_client(api_key: str, base_url: Optional[str]) -> Optional[AsyncOpenAI]:
    """Return an async client if an API key is configured, otherwise None."""
    if not api_key:
        return None
    return AsyncOpenAI(api_key=api_key, base_url=base_url)


class TextGenerator:
    def __init__(self, api_key: str = LLM_API_KEY, base_url: Optional[str] = LLM_BASE_URL,
                 model: str = LLM_MODEL, client: Optional[AsyncOpenAI] = None):
        self.model = model
        self._client = client or _get_openai_client(api_key, base_url)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def generate(self, prompt: str, max_tokens: int) -> str:
        """Raw completion text. Raises SourceTierError when disabled or the call fails."""
        if self._client is None:
            raise SourceTierError("generative", "LLM_API_KEY not set")
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=0.7,
            )
        except OpenAIError as e:
            raise SourceTierError("generative", f"completion request failed: {e}") from e

        text = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not text:
            logger.warning("Generative model returned empty text")
            raise SourceTierError("generative", "empty response")
        return text
