"""Gap analysis - works out which parts of a short script are missing or thin."""
from typing import List, Optional

from utils.logger import setup_logger
from structure.models import MajorBlock, ScriptDocument
from structure.parser import parse_document
from structure.text import count_words, titles_match
from expansion.models import (
    ChunkInfo,
    ContentPoint,
    ExpansionPolicy,
    Gap,
    GapAnalysisResult,
    GapKind,
    GapPriority,
)

logger = setup_logger(__name__)

BLOCK_GAP_DESCRIPTIONS = {
    MajorBlock.DESCRIPTION: "Complete video description with timestamps",
    MajorBlock.TAGS: "20+ relevant, comma-separated tags",
}


class GapAnalyzer:
    """Compares a script against its content points and target length."""

    def __init__(self, policy: Optional[ExpansionPolicy] = None):
        """Initialize analyzer.

        Args:
            policy: Thresholds and budgets; defaults come from config
        """
        self.policy = policy or ExpansionPolicy()

    def analyze(
        self,
        document: str,
        content_points: List[ContentPoint],
        target_words: int,
        chunk_info: Optional[ChunkInfo] = None
    ) -> GapAnalysisResult:
        """Produce the prioritised gap list for a script.

        Args:
            document: Current script text
            content_points: Topics the script must cover
            target_words: Desired total length in words
            chunk_info: Position of this part in a multi-part script, if any

        Returns:
            GapAnalysisResult; gaps is empty whenever the script is long enough
        """
        current_words = count_words(document)
        words_needed = target_words - current_words
        result = GapAnalysisResult(
            words_needed=words_needed,
            current_words=current_words,
            target_words=target_words
        )

        if words_needed <= 0:
            return result

        parsed = parse_document(document)
        gaps = self._content_point_gaps(parsed, content_points, target_words, chunk_info)

        if chunk_info is None or chunk_info.is_last:
            gaps.extend(self._major_block_gaps(parsed))

        if not gaps and words_needed > self.policy.min_general_expansion_words:
            gaps.append(self._shortfall_gap(parsed, words_needed))

        # sorted() is stable, so equal priorities keep discovery order
        result.gaps = sorted(gaps, key=lambda gap: gap.priority.rank)

        logger.info(
            f"Gap analysis: {current_words}/{target_words} words, "
            f"{words_needed} needed, {result.gap_count} gaps"
        )
        return result

    def _content_point_gaps(
        self,
        parsed: ScriptDocument,
        content_points: List[ContentPoint],
        target_words: int,
        chunk_info: Optional[ChunkInfo]
    ) -> List[Gap]:
        """Missing and under-developed sections, one check per content point."""
        if not content_points:
            return []

        covered = chunk_info.previously_covered_sections if chunk_info else []
        expected_words = target_words // len(content_points)
        threshold_words = expected_words * self.policy.underdeveloped_threshold
        gaps = []

        for index, point in enumerate(content_points):
            title = point.title.strip() or f"Point {index + 1}"
            description = point.description or ""

            if any(titles_match(title, previous) for previous in covered):
                logger.debug(f"Skipping '{title}': covered by an earlier chunk")
                continue

            section_index = parsed.find_section(title)
            if section_index is None:
                gaps.append(Gap(
                    kind=GapKind.MISSING_SECTION,
                    title=title,
                    description=description,
                    priority=GapPriority.HIGH,
                    estimated_words=expected_words
                ))
                continue

            section_words = parsed.span_words(section_index)
            if section_words < threshold_words:
                gaps.append(Gap(
                    kind=GapKind.UNDERDEVELOPED_SECTION,
                    title=title,
                    description=description,
                    priority=GapPriority.MEDIUM,
                    estimated_words=int(threshold_words)
                ))

        return gaps

    def _major_block_gaps(self, parsed: ScriptDocument) -> List[Gap]:
        """Mandatory closing blocks; only checked for a whole script or its last chunk."""
        gaps = []
        for block in (MajorBlock.DESCRIPTION, MajorBlock.TAGS):
            if parsed.has_block(block):
                continue
            gaps.append(Gap(
                kind=GapKind.MISSING_MAJOR_BLOCK,
                title=block.display_title,
                description=BLOCK_GAP_DESCRIPTIONS[block],
                priority=GapPriority.CRITICAL,
                estimated_words=self.policy.block_budget(block),
                block=block
            ))
        return gaps

    def _shortfall_gap(self, parsed: ScriptDocument, words_needed: int) -> Gap:
        """Document-wide gap used when nothing specific is missing."""
        sections = parsed.content_sections()
        if sections:
            return Gap(
                kind=GapKind.GENERAL_EXPANSION,
                title="Existing sections",
                description=f"Deepen all {len(sections)} existing sections evenly",
                priority=GapPriority.LOW,
                estimated_words=words_needed,
                section_count=len(sections)
            )
        return Gap(
            kind=GapKind.CONTENT_EXPANSION,
            title="Full script",
            description="Add depth across the whole script",
            priority=GapPriority.LOW,
            estimated_words=words_needed
        )
