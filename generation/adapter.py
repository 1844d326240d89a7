"""Single, time-bounded call into the text-generation service."""
import asyncio
from typing import Optional

from utils.logger import setup_logger
from structure.text import count_words
from expansion.models import GenerationRequest
from generation.cleaner import clean_expansion
from generation.providers import GenerationError, TextGenerationProvider
import config

logger = setup_logger(__name__)


class GenerationAdapter:
    """Calls a provider once and turns every failure into None."""

    def __init__(
        self,
        provider: TextGenerationProvider,
        timeout_seconds: float = config.GENERATION_TIMEOUT_SECONDS
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    async def generate(self, request: GenerationRequest) -> Optional[str]:
        """Generate expansion content for a request.

        Args:
            request: Prompt and model parameters

        Returns:
            Cleaned expansion text, or None if the call failed, timed out or
            produced nothing usable
        """
        try:
            raw = await asyncio.wait_for(
                self.provider.generate(request.prompt_text, request.model_params),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Generation via {self.provider.get_provider_name()} timed out after {self.timeout_seconds:g}s"
            )
            return None
        except GenerationError as e:
            logger.warning(f"Generation failed: {e}")
            return None
        except Exception as e:
            # Providers outside this package may raise their own transport errors
            logger.warning(
                f"Generation via {self.provider.get_provider_name()} raised {type(e).__name__}: {e}"
            )
            return None

        if not isinstance(raw, str):
            logger.warning(
                f"Generation via {self.provider.get_provider_name()} returned "
                f"{type(raw).__name__}, expected text"
            )
            return None

        content = clean_expansion(raw)
        if not content:
            logger.warning("Generation returned no usable content")
            return None

        logger.info(f"✅ Expansion generated: {count_words(content)} words (target {request.word_target})")
        return content
