"""Clean-up of raw generator output before it is merged into a script."""
import re

# Conversational lead-ins a generator may put before the real content.
# Each is matched against a whole (stripped) line at the very start only, and
# each needs a closing ':' (or '...', or a bare interjection) so prose that
# merely starts the same way is kept.
PREAMBLE_PATTERNS = [
    re.compile(r"^(?:sure|certainly|absolutely|of course|okay|ok|great)(?:[!.,]|\b.{0,150}:)$", re.IGNORECASE),
    re.compile(r"^i(?:'ll|’ll| will|'ve|’ve| have|'m going to| am going to)\s.{0,200}:$", re.IGNORECASE),
    re.compile(r"^here(?:'s|’s| is| are)\b.{0,200}:$", re.IGNORECASE),
    re.compile(r"^(?:continuing|picking up|resuming)\s+(?:from|where|with)\b.{0,200}(?::|\.\.\.|…)$", re.IGNORECASE),
    re.compile(r"^(?:below|the following)\b.{0,200}:$", re.IGNORECASE),
    re.compile(r"^(?:expansion|additional|new) content:?$", re.IGNORECASE),
]
MAX_PREAMBLE_LINES = 3

_RULE_PATTERN = re.compile(r'^(?:-{3,}|\*{3,}|_{3,})$')
_FENCE_PATTERN = re.compile(r'^```[\w-]*\n(.*)\n```$', re.DOTALL)


def is_preamble_line(line: str) -> bool:
    """True if a single line reads like a conversational lead-in."""
    text = line.strip().strip('*_').strip()
    return any(pattern.match(text) for pattern in PREAMBLE_PATTERNS)


def strip_preamble(text: str) -> str:
    """Remove conversational lead-in lines from the start of generated text.

    Only the first few non-blank lines are inspected and scanning stops at
    the first line of real content, so the body is never touched.

    Args:
        text: Raw generator output

    Returns:
        Text starting at the first line of real content
    """
    lines = text.split('\n')
    index = 0
    removed = 0

    while index < len(lines):
        line = lines[index].strip()
        if not line or (removed and _RULE_PATTERN.match(line)):
            index += 1
            continue
        if removed < MAX_PREAMBLE_LINES and is_preamble_line(line):
            index += 1
            removed += 1
            continue
        break

    if not removed:
        return text.strip()
    return '\n'.join(lines[index:]).strip()


def unwrap_code_fence(text: str) -> str:
    """Drop a code fence that wraps the entire output."""
    match = _FENCE_PATTERN.match(text.strip())
    if match:
        return match.group(1)
    return text


def clean_expansion(text: str) -> str:
    """Prepare raw generator output for merging.

    Args:
        text: Raw generator output

    Returns:
        Cleaned text (may be empty)
    """
    text = text.replace('\r\n', '\n')
    text = unwrap_code_fence(text.strip())
    text = strip_preamble(text)

    # Collapse runs of blank lines while preserving paragraph breaks
    text = re.sub(r'\n[ \t]*\n(?:[ \t]*\n)+', '\n\n', text)

    return text.strip()
