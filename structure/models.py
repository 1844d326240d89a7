"""Pydantic models for the parsed script document."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from structure.text import (
    count_words_in_lines,
    normalize_title,
    strip_leading_blanks,
    strip_trailing_blanks,
    titles_match,
)

MAJOR_LEVEL = 2  # "## Description", "## Tags"
MINOR_LEVEL = 3  # "### <content section>"


class MajorBlock(str, Enum):
    """The two mandatory closing blocks of a finished script."""
    DESCRIPTION = "description"
    TAGS = "tags"

    @property
    def display_title(self) -> str:
        return "Description" if self is MajorBlock.DESCRIPTION else "Tags"

    @property
    def heading(self) -> str:
        return f"{'#' * MAJOR_LEVEL} {self.display_title}"


BLOCK_ALIASES = {
    MajorBlock.DESCRIPTION: {"description", "video description", "summary"},
    MajorBlock.TAGS: {"tags", "keywords", "video tags"},
}


def block_for_heading(level: int, title: str) -> Optional[MajorBlock]:
    """Return the mandatory block a heading opens, if any."""
    if level != MAJOR_LEVEL:
        return None
    normalized = normalize_title(title)
    for block, aliases in BLOCK_ALIASES.items():
        if normalized in aliases:
            return block
    return None


def heading_line(title: str, level: int = MINOR_LEVEL) -> str:
    """Build a heading line, e.g. "### Conclusion"."""
    return f"{'#' * level} {title.strip()}"


class Section(BaseModel):
    """A heading and the lines up to the next heading of any level."""
    level: int
    title: str
    heading: str  # raw heading line, kept verbatim for lossless rendering
    body: List[str] = Field(default_factory=list)

    @property
    def block(self) -> Optional[MajorBlock]:
        return block_for_heading(self.level, self.title)

    @property
    def word_count(self) -> int:
        return count_words_in_lines(self.body)

    def lines(self) -> List[str]:
        return [self.heading] + self.body


class Piece(BaseModel):
    """A unit of generated text: one heading of level <= minor plus its sub-headings.

    The lead text before any heading is a piece with no heading.
    """
    level: Optional[int] = None
    title: Optional[str] = None
    heading: Optional[str] = None
    body: List[str] = Field(default_factory=list)

    @property
    def block(self) -> Optional[MajorBlock]:
        if self.level is None or self.title is None:
            return None
        return block_for_heading(self.level, self.title)

    @property
    def is_empty(self) -> bool:
        return self.heading is None and not any(line.strip() for line in self.body)

    def content_lines(self) -> List[str]:
        """Body without surrounding blank lines."""
        return strip_trailing_blanks(strip_leading_blanks(self.body))


class ScriptDocument(BaseModel):
    """One-time parse of a script: preamble text followed by ordered sections.

    All gap detection and merging work on this structure; render() turns it
    back into text and is lossless for an unmodified parse.
    """
    preamble: List[str] = Field(default_factory=list)
    sections: List[Section] = Field(default_factory=list)

    def render(self) -> str:
        lines = list(self.preamble)
        for section in self.sections:
            lines.extend(section.lines())
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def span_end(self, index: int) -> int:
        """Index one past the last section belonging to sections[index]'s span."""
        level = self.sections[index].level
        end = index + 1
        while end < len(self.sections) and self.sections[end].level > level:
            end += 1
        return end

    def span_words(self, index: int) -> int:
        """Words in a section's body plus any nested sub-sections (headings excluded)."""
        words = self.sections[index].word_count
        for nested in self.sections[index + 1:self.span_end(index)]:
            words += nested.word_count
        return words

    def find_section(self, title: str) -> Optional[int]:
        """Index of the first content section whose heading matches title."""
        for index, section in enumerate(self.sections):
            if section.block is None and titles_match(section.title, title):
                return index
        return None

    def find_block(self, block: MajorBlock) -> Optional[int]:
        for index, section in enumerate(self.sections):
            if section.block is block:
                return index
        return None

    def has_block(self, block: MajorBlock) -> bool:
        return self.find_block(block) is not None

    def content_sections(self) -> List[Section]:
        """Minor-heading sections that are not mandatory blocks."""
        return [
            section for section in self.sections
            if section.level == MINOR_LEVEL and section.block is None
        ]

    def content_insertion_index(self) -> int:
        """Where new content goes: before the first mandatory block, else at the end."""
        for index, section in enumerate(self.sections):
            if section.block is not None:
                return index
        return len(self.sections)

    def find_text_line(self, text: str) -> Optional[int]:
        """Section index whose lines first mention text; -1 means the preamble."""
        needle = text.strip().lower()
        if not needle:
            return None
        if any(needle in line.lower() for line in self.preamble):
            return -1
        for index, section in enumerate(self.sections):
            if any(needle in line.lower() for line in section.lines()):
                return index
        return None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _lines_before(self, index: int) -> List[str]:
        """The line list that directly precedes sections[index]."""
        if index <= 0:
            return self.preamble
        return self.sections[index - 1].body

    def insert_lines_before(self, index: int, new_lines: List[str]) -> None:
        """Add loose text directly before sections[index] (or at the end)."""
        _splice_tail(self._lines_before(index), new_lines, followed=index < len(self.sections))

    def append_to_span(self, index: int, new_lines: List[str]) -> None:
        """Add lines at the end of sections[index]'s span, keeping its heading single."""
        self.insert_lines_before(self.span_end(index), new_lines)

    def insert_after_line(self, index: int, needle: str, new_lines: List[str]) -> None:
        """Add lines right after the first line of sections[index] (or preamble) containing needle."""
        target = self.preamble if index < 0 else self.sections[index].body
        lowered = needle.strip().lower()
        position = None
        if index >= 0 and lowered in self.sections[index].heading.lower():
            position = 0
        else:
            for line_number, line in enumerate(target):
                if lowered in line.lower():
                    position = line_number + 1
                    break
        if position is None:
            position = len(target)
        content = strip_trailing_blanks(strip_leading_blanks(new_lines))
        target[position:position] = [""] + content + [""]

    def insert_section(self, index: int, section: Section) -> None:
        """Insert a new section before sections[index] with blank-line separation."""
        at_end = index >= len(self.sections)
        before = self._lines_before(index)
        if index <= 0 and not any(line.strip() for line in before):
            before.clear()
        ended_with_newline = at_end and bool(before) and not before[-1].strip()
        if before and before[-1].strip():
            before.append("")

        body = strip_trailing_blanks(section.body)
        if not at_end or ended_with_newline:
            body.append("")
        self.sections.insert(index, section.model_copy(update={"body": body}))

    def move_to_end(self, index: int) -> None:
        """Move one section (without its nested sections) after every other section."""
        section = self.sections.pop(index)
        self.insert_section(len(self.sections), section)

    def replace_body(self, index: int, new_lines: List[str]) -> None:
        """Replace a section's own body, preserving the blank lines that trail it."""
        section = self.sections[index]
        trailing = len(section.body) - len(strip_trailing_blanks(section.body))
        section.body = strip_trailing_blanks(new_lines) + [""] * trailing


def _splice_tail(target: List[str], new_lines: List[str], followed: bool) -> None:
    """Append new_lines to target, separated by a blank line, keeping target's trailing blanks."""
    content = strip_trailing_blanks(strip_leading_blanks(new_lines))
    if not content:
        return
    trailing = 0
    while target and not target[-1].strip():
        target.pop()
        trailing += 1
    if target:
        target.append("")
    target.extend(content)
    if followed:
        trailing = max(trailing, 1)
    target.extend([""] * trailing)
