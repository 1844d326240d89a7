"""Small text helpers shared by the parser, the gap analyzer and the merger."""
import re

# Optional "Section 2:" / "Part 3 -" / "4." style prefixes on heading titles
_NUMBERING_PATTERN = re.compile(
    r'^(?:(?:section|part|point|step)\s+\d+\s*[.):\-]?|\d+\s*[.):\-])\s+',
    re.IGNORECASE
)
_EMPHASIS_CHARS = '*_`"\''


def count_words(text: str) -> int:
    """Count whitespace-delimited words, ignoring bare heading markers.

    "### Intro\\nHello." counts as 2 words, not 3.
    """
    return sum(1 for token in text.split() if token.strip('#'))


def count_words_in_lines(lines: list[str]) -> int:
    """Count words across a list of lines."""
    return sum(count_words(line) for line in lines)


def normalize_title(title: str) -> str:
    """Normalise a heading or content point title for identity comparison.

    Lower-cases, collapses whitespace and drops list numbering, surrounding
    emphasis markers and a trailing colon.
    """
    text = title.strip().strip(_EMPHASIS_CHARS).strip()
    text = _NUMBERING_PATTERN.sub('', text)
    text = text.rstrip(':').strip().strip(_EMPHASIS_CHARS).strip()
    return re.sub(r'\s+', ' ', text).lower()


def titles_match(left: str, right: str) -> bool:
    """True when two titles name the same section."""
    normalized = normalize_title(left)
    return bool(normalized) and normalized == normalize_title(right)


def strip_trailing_blanks(lines: list[str]) -> list[str]:
    """Return a copy of lines without trailing blank lines."""
    end = len(lines)
    while end > 0 and not lines[end - 1].strip():
        end -= 1
    return list(lines[:end])


def strip_leading_blanks(lines: list[str]) -> list[str]:
    """Return a copy of lines without leading blank lines."""
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    return list(lines[start:])
