"""
Text-generation providers.

Abstract layer so the expander can be pointed at any text-generation
service. The expansion logic only ever sees TextGenerationProvider.generate()
and GenerationError.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import anthropic
from anthropic import AsyncAnthropic
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from utils.logger import setup_logger
from expansion.models import GenerationParams
import config

logger = setup_logger(__name__)


class GenerationError(Exception):
    """Raised when the text-generation service fails."""
    pass


class TextGenerationProvider(ABC):
    """Abstract base class for text-generation services."""

    @abstractmethod
    async def generate(self, prompt: str, params: GenerationParams) -> str:
        """Return generated text for prompt; raise GenerationError on failure."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier string."""
        pass


def _is_transient(error: BaseException) -> bool:
    """Rate limits, dropped connections and 5xx/overload responses are worth retrying."""
    if isinstance(error, (anthropic.RateLimitError, anthropic.APIConnectionError)):
        return True
    return isinstance(error, anthropic.APIStatusError) and error.status_code >= 500


class AnthropicProvider(TextGenerationProvider):
    """Generates text with the Anthropic Messages API."""

    def __init__(
        self,
        client: Optional[AsyncAnthropic] = None,
        api_key: Optional[str] = config.ANTHROPIC_API_KEY,
        max_attempts: int = config.GENERATION_MAX_ATTEMPTS
    ):
        """Initialize provider.

        Args:
            client: Pre-built async Anthropic client (a new one is created if omitted)
            api_key: API key used when creating the client
            max_attempts: Calls per generate(); 1 means no retry
        """
        # The SDK's own retries stay off so max_attempts is the only retry knob
        self.client = client or AsyncAnthropic(api_key=api_key, max_retries=0)
        self.max_attempts = max(1, max_attempts)
        self.total_tokens_used = 0

    async def generate(self, prompt: str, params: GenerationParams) -> str:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=config.RETRY_BACKOFF_MULTIPLIER, min=2, max=60),
                retry=retry_if_exception(_is_transient),
                reraise=True
            ):
                with attempt:
                    message = await self.client.messages.create(
                        model=params.model,
                        max_tokens=params.max_output_tokens,
                        temperature=params.temperature,
                        messages=[
                            {"role": "user", "content": prompt}
                        ]
                    )
        except anthropic.APIError as e:
            raise GenerationError(f"Anthropic call failed: {e}") from e

        self.total_tokens_used += message.usage.input_tokens + message.usage.output_tokens

        if message.stop_reason == "max_tokens":
            logger.warning(f"Generation hit the {params.max_output_tokens} token limit; output is truncated")

        text = "".join(
            block.text for block in message.content
            if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise GenerationError("Anthropic returned an empty response")
        return text

    def get_provider_name(self) -> str:
        return "anthropic"


class CallableProvider(TextGenerationProvider):
    """Wraps a plain callable ``(prompt, params) -> str`` (sync or async)."""

    def __init__(self, func: Callable[[str, GenerationParams], Any], name: str = "callable"):
        self.func = func
        self.name = name

    async def generate(self, prompt: str, params: GenerationParams) -> str:
        try:
            if inspect.iscoroutinefunction(self.func):
                result = await self.func(prompt, params)
            else:
                # Worker thread so a blocking callable still honours the caller's timeout
                result = await asyncio.to_thread(self.func, prompt, params)
                if inspect.isawaitable(result):
                    result = await result
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"{self.name} generator failed: {e}") from e

        if not isinstance(result, str):
            raise GenerationError(f"{self.name} generator returned {type(result).__name__}, expected text")
        return result

    def get_provider_name(self) -> str:
        return self.name


def as_provider(generator: Any) -> TextGenerationProvider:
    """Accept either a provider or a bare callable."""
    if isinstance(generator, TextGenerationProvider):
        return generator
    if callable(generator):
        return CallableProvider(generator)
    raise TypeError(f"Expected a TextGenerationProvider or callable, got {type(generator).__name__}")
