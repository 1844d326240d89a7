"""Expand a short script: analyze, ask for what is missing, merge it back."""
from typing import Any, List, Optional, Sequence, Union

from utils.logger import setup_logger
from structure.text import count_words
from expansion.gap_analyzer import GapAnalyzer
from expansion.merger import DocumentMerger
from expansion.models import (
    ChunkInfo,
    ContentPoint,
    ExpansionPolicy,
    ExpansionResult,
    ExpansionState,
    ReferenceContext,
)
from expansion.prompt_builder import ExpansionPromptBuilder
from generation.adapter import GenerationAdapter
from generation.providers import TextGenerationProvider, as_provider

logger = setup_logger(__name__)


def _coerce_points(content_points: Optional[Sequence[Union[ContentPoint, dict]]]) -> List[ContentPoint]:
    return [
        point if isinstance(point, ContentPoint) else ContentPoint.model_validate(point)
        for point in content_points or []
    ]


class ScriptExpander:
    """Runs one expansion pass. Holds no state between calls beyond its collaborators."""

    def __init__(self, provider: TextGenerationProvider, policy: Optional[ExpansionPolicy] = None):
        """Initialize expander.

        Args:
            provider: Text-generation service
            policy: Thresholds, budgets and timeout; defaults come from config
        """
        self.policy = policy or ExpansionPolicy()
        self.analyzer = GapAnalyzer(self.policy)
        self.prompt_builder = ExpansionPromptBuilder(self.policy)
        self.adapter = GenerationAdapter(provider, timeout_seconds=self.policy.generation_timeout_seconds)
        self.merger = DocumentMerger(self.policy)

    async def expand(
        self,
        document: str,
        content_points: Optional[Sequence[Union[ContentPoint, dict]]],
        target_words: int,
        chunk_info: Optional[Union[ChunkInfo, dict]] = None,
        reference_context: Optional[Union[ReferenceContext, dict]] = None
    ) -> ExpansionResult:
        """Bring a script closer to target_words with at most one generation call.

        Returns:
            ExpansionResult; its document is the input unchanged for every
            state except MERGED
        """
        points = _coerce_points(content_points)
        if isinstance(chunk_info, dict):
            chunk_info = ChunkInfo.model_validate(chunk_info)
        if isinstance(reference_context, dict):
            reference_context = ReferenceContext.model_validate(reference_context)

        logger.info("🔍 Analyzing script for expansion opportunities...")
        analysis = self.analyzer.analyze(document, points, target_words, chunk_info)

        def finish(state: ExpansionState, text: str, request=None) -> ExpansionResult:
            return ExpansionResult(
                state=state,
                document=text,
                analysis=analysis,
                request=request,
                final_words=count_words(text)
            )

        if analysis.words_needed <= 0:
            logger.info("✓ Script already meets target word count")
            return finish(ExpansionState.SUFFICIENT, document)

        if not analysis.gaps:
            logger.warning("No specific gaps identified; script is short but complete")
            return finish(ExpansionState.NO_GAPS_FOUND, document)

        request = self.prompt_builder.build(document, analysis, chunk_info, reference_context)
        expansion = await self.adapter.generate(request)

        if expansion is None:
            logger.warning("Failed to generate expansion content; keeping original script")
            return finish(ExpansionState.GENERATION_FAILED, document, request)

        merged = self.merger.merge(document, expansion, analysis)
        result = finish(ExpansionState.MERGED, merged, request)
        logger.info(f"✅ Script expanded: {analysis.current_words} → {result.final_words} words")
        return result


async def expand_short_document(
    document: str,
    content_points: Optional[Sequence[Union[ContentPoint, dict]]],
    target_words: int,
    generator: Any,
    chunk_info: Optional[Union[ChunkInfo, dict]] = None,
    reference_context: Optional[Union[ReferenceContext, dict]] = None,
    policy: Optional[ExpansionPolicy] = None
) -> str:
    """Expand a short script and return the resulting text.

    Args:
        document: Current script text
        content_points: Topics the script must cover (models or dicts)
        target_words: Desired total length in words
        generator: TextGenerationProvider, or callable (prompt, params) -> str, sync or async
        chunk_info: Part boundaries for multi-part scripts
        reference_context: Research sources for grounding
        policy: Overrides for the config defaults

    Returns:
        The expanded script, or the input unchanged when no expansion was
        needed or possible. Generation failures never raise.
    """
    expander = ScriptExpander(as_provider(generator), policy)
    result = await expander.expand(document, content_points, target_words, chunk_info, reference_context)
    return result.document
