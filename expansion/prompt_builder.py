"""Turns the top-priority gaps into a single generation request."""
import math
from typing import Optional

from utils.logger import setup_logger
from structure.parser import parse_document
from expansion import prompts
from expansion.models import (
    ChunkInfo,
    ExpansionPolicy,
    GapAnalysisResult,
    GenerationParams,
    GenerationRequest,
    ReferenceContext,
)

logger = setup_logger(__name__)


class ExpansionPromptBuilder:
    """Builds the prompt and output sizing for one expansion call."""

    def __init__(self, policy: Optional[ExpansionPolicy] = None):
        self.policy = policy or ExpansionPolicy()

    def build(
        self,
        document: str,
        gap_analysis: GapAnalysisResult,
        chunk_info: Optional[ChunkInfo] = None,
        reference_context: Optional[ReferenceContext] = None
    ) -> GenerationRequest:
        """Build a generation request for the top gaps.

        Args:
            document: Current script text (restated in full in the prompt)
            gap_analysis: Result of GapAnalyzer.analyze(); must contain gaps
            chunk_info: Part boundaries for multi-part scripts
            reference_context: Research sources; at most max_reference_sources are used

        Returns:
            GenerationRequest with prompt, word target and model parameters
        """
        top_gaps = gap_analysis.top_gaps(self.policy.max_gaps_per_request)
        if not top_gaps:
            raise ValueError("Cannot build an expansion prompt without gaps")

        word_target = max(gap_analysis.words_needed, 0)
        fallback_words = word_target // len(top_gaps)
        section_titles = [section.title for section in parse_document(document).content_sections()]

        chunk_text = prompts.chunk_scope_section(chunk_info) if chunk_info else ""
        reference_text = ""
        if reference_context and reference_context.sources:
            reference_text = prompts.reference_section(
                reference_context.sources[:self.policy.max_reference_sources],
                self.policy.reference_excerpt_chars
            )

        prompt_text = prompts.expansion_prompt(
            document=document,
            current_words=gap_analysis.current_words,
            target_words=gap_analysis.target_words,
            word_target=word_target,
            gap_text=prompts.gaps_section(top_gaps, fallback_words, section_titles),
            chunk_text=chunk_text,
            reference_text=reference_text
        )

        params = GenerationParams(
            model=self.policy.model,
            max_output_tokens=self.max_output_tokens(word_target),
            temperature=self.policy.temperature
        )

        logger.info(
            f"📝 Expansion prompt for {len(top_gaps)} gaps "
            f"({word_target} words, max {params.max_output_tokens} tokens)"
        )

        return GenerationRequest(
            prompt_text=prompt_text,
            word_target=word_target,
            model_params=params,
            gaps=top_gaps
        )

    def max_output_tokens(self, word_target: int) -> int:
        """Output budget that scales with the word target, capped at the ceiling."""
        wanted = math.ceil(word_target * self.policy.output_tokens_per_word)
        return max(1, min(self.policy.max_output_tokens, wanted))
