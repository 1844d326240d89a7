"""Heading parser - turns script text into a ScriptDocument in a single pass."""
import re
from typing import List, Optional

from structure.models import MINOR_LEVEL, Piece, ScriptDocument, Section

# ATX headings: up to 3 leading spaces, 1-6 '#', optional closing '#' run
HEADING_PATTERN = re.compile(r'^ {0,3}(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$')


def match_heading(line: str) -> Optional[tuple[int, str]]:
    """Return (level, title) if line is a heading."""
    match = HEADING_PATTERN.match(line)
    if not match:
        return None
    title = match.group(2).strip()
    if not title:
        return None
    return len(match.group(1)), title


def parse_document(text: str) -> ScriptDocument:
    """Parse script text into preamble + ordered sections.

    Splits on newlines once; every heading line starts a new Section whose
    body runs to the next heading of any level. render() reverses this
    exactly.
    """
    document = ScriptDocument()
    current: Optional[Section] = None

    for line in text.split('\n'):
        heading = match_heading(line)
        if heading:
            level, title = heading
            current = Section(level=level, title=title, heading=line)
            document.sections.append(current)
        elif current is None:
            document.preamble.append(line)
        else:
            current.body.append(line)

    return document


def split_pieces(text: str) -> List[Piece]:
    """Split generated text on heading boundaries of minor level or above.

    Deeper headings (####...) travel with the piece they belong to. Text
    before the first heading becomes a headless piece.
    """
    document = parse_document(text.strip('\n'))
    pieces: List[Piece] = []

    lead = Piece(body=list(document.preamble))
    if not lead.is_empty:
        pieces.append(lead)

    current: Optional[Piece] = None
    for section in document.sections:
        if current is None or section.level <= MINOR_LEVEL:
            current = Piece(
                level=section.level,
                title=section.title,
                heading=section.heading,
                body=list(section.body)
            )
            pieces.append(current)
        else:
            current.body.extend(section.lines())

    return pieces


def first_heading(text: str) -> Optional[tuple[int, str]]:
    """The heading on the first non-blank line of text, if there is one."""
    for line in text.split('\n'):
        if line.strip():
            return match_heading(line)
    return None
