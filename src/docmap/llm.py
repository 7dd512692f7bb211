"""LLM completion over a small, closed set of backends."""

import logging
from enum import Enum
from typing import Any

from .errors import GenerationError

logger = logging.getLogger(__name__)


class ModelChoice(str, Enum):
    CLAUDE = "claude"
    DEEPSEEK = "deepseek"


def parse_model(value: str | ModelChoice) -> ModelChoice:
    try:
        return ModelChoice(value)
    except ValueError:
        choices = ", ".join(m.value for m in ModelChoice)
        raise ValueError(f"Unknown model: {value} (expected one of: {choices})") from None


class LLMClient:
    """Sends prompts to the selected backend.

    The selection lives on the client instance; whoever owns the client
    (usually a ResearchSession) decides which backend answers.
    """

    def __init__(self, config: dict[str, Any], model: str | ModelChoice | None = None):
        self.config = config
        llm_cfg = config.get("llm", {})
        self.model = parse_model(model or llm_cfg.get("model", "claude"))
        self.max_tokens = llm_cfg.get("max_tokens", 2000)
        self._clients: dict[ModelChoice, Any] = {}

    def set_model(self, model: str | ModelChoice) -> None:
        self.model = parse_model(model)

    def get_model(self) -> ModelChoice:
        return self.model

    @property
    def available(self) -> bool:
        """Whether an API key is configured for the selected backend."""
        key = "claude_api_key" if self.model is ModelChoice.CLAUDE else "openrouter_api_key"
        return bool(self.config.get(key))

    @property
    def model_name(self) -> str:
        llm_cfg = self.config.get("llm", {})
        if self.model is ModelChoice.CLAUDE:
            return llm_cfg.get("claude_model", "claude-sonnet-4-20250514")
        return llm_cfg.get("deepseek_model", "deepseek/deepseek-chat-v3-0324:free")

    def _client(self):
        if self.model in self._clients:
            return self._clients[self.model]

        if self.model is ModelChoice.CLAUDE:
            api_key = self.config.get("claude_api_key")
            if not api_key:
                raise GenerationError(
                    "Claude API key required. Set ANTHROPIC_API_KEY or claude_api_key in config."
                )
            import anthropic
            client = anthropic.AsyncAnthropic(api_key=api_key)
        else:
            api_key = self.config.get("openrouter_api_key")
            if not api_key:
                raise GenerationError(
                    "OpenRouter API key required. Set OPENROUTER_API_KEY or openrouter_api_key in config."
                )
            from openai import AsyncOpenAI
            client = AsyncOpenAI(
                base_url=self.config.get("llm", {}).get("openrouter_base_url", "https://openrouter.ai/api/v1"),
                api_key=api_key,
            )

        self._clients[self.model] = client
        return client

    async def complete(self, prompt: str, system: str | None = None) -> str:
        """Return the model's text reply, raising GenerationError on failure or empty output."""
        client = self._client()
        logger.debug(f"Completing with {self.model.value} ({self.model_name}), {len(prompt)} chars")

        try:
            if self.model is ModelChoice.CLAUDE:
                kwargs: dict[str, Any] = {}
                if system:
                    kwargs["system"] = system
                response = await client.messages.create(
                    model=self.model_name,
                    max_tokens=self.max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                    **kwargs,
                )
                text = "".join(
                    block.text for block in response.content if getattr(block, "type", "") == "text"
                )
            else:
                messages = []
                if system:
                    messages.append({"role": "system", "content": system})
                messages.append({"role": "user", "content": prompt})
                completion = await client.chat.completions.create(
                    model=self.model_name,
                    max_tokens=self.max_tokens,
                    messages=messages,
                )
                text = completion.choices[0].message.content if completion.choices else ""
        except Exception as e:
            raise GenerationError(f"{self.model.value} request failed: {e}") from e

        if not text or not text.strip():
            raise GenerationError(f"{self.model.value} returned an empty response")
        return text.strip()
