"""Splices generated content into a script without duplicating headings."""
import re
from enum import Enum
from typing import Dict, List, Optional, Tuple

from utils.logger import setup_logger
from structure.models import (
    MAJOR_LEVEL,
    MINOR_LEVEL,
    MajorBlock,
    Piece,
    ScriptDocument,
    Section,
    block_for_heading,
    heading_line,
)
from structure.parser import first_heading, match_heading, parse_document, split_pieces
from structure.text import count_words, titles_match
from expansion.models import ExpansionPolicy, Gap, GapAnalysisResult, GapKind

logger = setup_logger(__name__)

_LIST_MARKER = re.compile(r'^(?:[-*•]|\d+[.)])\s+')
_PLACEHOLDER = re.compile(r'^\[[^\]]*\]$')


class MergeStrategy(str, Enum):
    HEADERED_BLOCKS = "headered_blocks"  # expansion opens with ## Description / ## Tags
    SECTION_WIDE = "section_wide"  # general/content-wide expansion
    PER_GAP = "per_gap"  # one piece per targeted gap


def normalize_tags(lines: List[str]) -> List[str]:
    """Flatten tag lines into unique tags, dropping placeholders, brackets and '#'."""
    tags: List[str] = []
    seen = set()
    for line in lines:
        line = _LIST_MARKER.sub('', line.strip())
        for item in line.split(','):
            tag = item.strip()
            if not tag or _PLACEHOLDER.match(tag):
                continue
            tag = tag.replace('[', '').replace(']', '').lstrip('#').strip()
            if tag and tag.lower() not in seen:
                seen.add(tag.lower())
                tags.append(tag)
    return tags


class DocumentMerger:
    """Inserts expansion content using the gap kinds to decide placement.

    Whatever the strategy, a heading that already exists in the script is
    never emitted a second time; new material for it is appended to the
    existing section instead.
    """

    def __init__(self, policy: Optional[ExpansionPolicy] = None):
        self.policy = policy or ExpansionPolicy()

    def merge(self, document: str, expansion_text: Optional[str], gap_analysis: GapAnalysisResult) -> str:
        """Merge expansion text into a script.

        Args:
            document: Current script text
            expansion_text: Cleaned generator output
            gap_analysis: The analysis the expansion was generated for

        Returns:
            The merged script, or the original string if nothing changed
        """
        if not expansion_text or not expansion_text.strip():
            return document

        strategy = self.choose_strategy(expansion_text, gap_analysis)
        parsed = parse_document(document)
        pieces = [piece for piece in split_pieces(expansion_text) if not piece.is_empty]

        if strategy is MergeStrategy.PER_GAP:
            self._merge_per_gap(parsed, pieces, gap_analysis.top_gaps(self.policy.max_gaps_per_request))
        else:
            for piece in pieces:
                self._place_piece(parsed, piece)

        merged = parsed.render()
        if merged == document:
            return document

        logger.info(
            f"Merged {len(pieces)} pieces ({strategy.value}): "
            f"{count_words(document)} → {count_words(merged)} words"
        )
        return merged

    @staticmethod
    def choose_strategy(expansion_text: str, gap_analysis: GapAnalysisResult) -> MergeStrategy:
        heading = first_heading(expansion_text)
        if heading and block_for_heading(*heading) is not None:
            return MergeStrategy.HEADERED_BLOCKS
        if gap_analysis.has_kind(GapKind.GENERAL_EXPANSION, GapKind.CONTENT_EXPANSION):
            return MergeStrategy.SECTION_WIDE
        return MergeStrategy.PER_GAP

    # ------------------------------------------------------------------
    # Per-gap strategy
    # ------------------------------------------------------------------

    def _merge_per_gap(self, parsed: ScriptDocument, pieces: List[Piece], gaps: List[Gap]) -> None:
        assignments, leftovers = self._assign_pieces(pieces, gaps)
        for gap, piece in assignments:
            if piece is None:
                logger.debug(f"No generated content for gap '{gap.title}'")
                continue
            self._apply_gap(parsed, gap, piece)

        for piece in leftovers:
            self._place_piece(parsed, piece)

    def _assign_pieces(
        self,
        pieces: List[Piece],
        gaps: List[Gap]
    ) -> Tuple[List[Tuple[Gap, Optional[Piece]]], List[Piece]]:
        """Pair pieces with gaps: by title first, then headless pieces in order."""
        unused = list(range(len(pieces)))
        chosen: Dict[int, int] = {}

        for gap_index, gap in enumerate(gaps):
            for piece_index in unused:
                if self._piece_matches_gap(pieces[piece_index], gap):
                    chosen[gap_index] = piece_index
                    unused.remove(piece_index)
                    break

        for gap_index in range(len(gaps)):
            if gap_index in chosen:
                continue
            headless = next((i for i in unused if pieces[i].heading is None), None)
            if headless is not None:
                chosen[gap_index] = headless
                unused.remove(headless)

        assignments = [
            (gap, pieces[chosen[index]] if index in chosen else None)
            for index, gap in enumerate(gaps)
        ]
        return assignments, [pieces[i] for i in unused]

    @staticmethod
    def _piece_matches_gap(piece: Piece, gap: Gap) -> bool:
        if piece.title is None:
            return False
        if gap.kind is GapKind.MISSING_MAJOR_BLOCK:
            # accept "### Tags" as well as "## Tags"
            return piece.block is gap.block or (
                gap.block is not None and titles_match(piece.title, gap.block.display_title)
            )
        return piece.block is None and titles_match(piece.title, gap.title)

    def _apply_gap(self, parsed: ScriptDocument, gap: Gap, piece: Piece) -> None:
        content = piece.content_lines()
        if not content:
            return

        if gap.kind is GapKind.MISSING_MAJOR_BLOCK and gap.block is not None:
            self._place_block(parsed, gap.block, content)

        elif gap.kind is GapKind.UNDERDEVELOPED_SECTION:
            existing = parsed.find_section(gap.title)
            if existing is not None:
                parsed.append_to_span(existing, content)
                return
            owner = parsed.find_text_line(gap.title)
            if owner is not None:
                logger.warning(f"Heading '{gap.title}' not found; inserting after its first mention")
                parsed.insert_after_line(owner, gap.title, content)
            else:
                self._insert_content_section(parsed, gap.title, None, content)

        elif gap.kind is GapKind.MISSING_SECTION:
            existing = parsed.find_section(gap.title)
            if existing is not None:
                parsed.append_to_span(existing, content)
            else:
                heading = piece.heading if piece.title and titles_match(piece.title, gap.title) else None
                self._insert_content_section(parsed, gap.title, heading, content)

        else:
            self._place_piece(parsed, piece)

    # ------------------------------------------------------------------
    # Placement rules shared by every strategy
    # ------------------------------------------------------------------

    def _place_piece(self, parsed: ScriptDocument, piece: Piece) -> None:
        """Place a piece by its own heading: blocks by block rule, content before the blocks."""
        content = piece.content_lines()
        if piece.block is not None:
            self._place_block(parsed, piece.block, content)
            return

        if piece.title is None:
            parsed.insert_lines_before(parsed.content_insertion_index(), content)
            return

        existing = parsed.find_section(piece.title)
        if existing is not None:
            parsed.append_to_span(existing, content)
        else:
            self._insert_content_section(parsed, piece.title, piece.heading, content)

    @staticmethod
    def _insert_content_section(
        parsed: ScriptDocument,
        title: str,
        heading: Optional[str],
        content: List[str]
    ) -> None:
        """New minor-heading section before the first mandatory block (or at the end)."""
        if not content:
            return
        parsed_heading = match_heading(heading) if heading else None
        if not parsed_heading or parsed_heading[0] != MINOR_LEVEL:
            heading = heading_line(title, MINOR_LEVEL)
        parsed.insert_section(
            parsed.content_insertion_index(),
            Section(level=MINOR_LEVEL, title=title, heading=heading, body=content)
        )

    @staticmethod
    def _place_block(parsed: ScriptDocument, block: MajorBlock, content: List[str]) -> None:
        """Description goes before Tags (or last); Tags always goes last."""
        tags_index = parsed.find_block(MajorBlock.TAGS)
        if tags_index is not None and tags_index != len(parsed.sections) - 1:
            logger.warning("Existing Tags block is not last; moving it to the end")
            parsed.move_to_end(tags_index)

        existing = parsed.find_block(block)

        if block is MajorBlock.TAGS:
            tags = normalize_tags(content)
            if not tags:
                return
            if existing is not None:
                current = normalize_tags(parsed.sections[existing].body)
                combined = normalize_tags(current + tags)
                if len(combined) > len(current):
                    parsed.replace_body(existing, [", ".join(combined)])
            else:
                parsed.insert_section(
                    len(parsed.sections),
                    Section(level=MAJOR_LEVEL, title=block.display_title, heading=block.heading,
                            body=[", ".join(tags)])
                )
            return

        if not content:
            return
        if existing is not None:
            parsed.append_to_span(existing, content)
            return
        tags_index = parsed.find_block(MajorBlock.TAGS)
        parsed.insert_section(
            tags_index if tags_index is not None else len(parsed.sections),
            Section(level=MAJOR_LEVEL, title=block.display_title, heading=block.heading, body=content)
        )
