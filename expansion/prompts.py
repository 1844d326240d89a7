"""LLM prompt templates for script expansion."""
from typing import List, Optional

from structure.models import MajorBlock
from expansion.models import ChunkInfo, Gap, GapKind, ReferenceSource

FORMATTING_RULES = f"""**FORMATTING RULES:**
- Use `{MajorBlock.DESCRIPTION.heading}` and `{MajorBlock.TAGS.heading}` (two #) ONLY for those two closing blocks
- Every other new section uses a `### Section Title` heading (three #)
- The {MajorBlock.TAGS.heading} block is ONE flat comma-separated list of real tags: no brackets, no placeholders, no numbering
- {MajorBlock.TAGS.heading} always comes last, after {MajorBlock.DESCRIPTION.heading}
- Write ONLY the new content - do not repeat, rewrite or summarise the existing script
- No introductions or commentary such as "Here's the additional content:" - start directly with the content"""


def _format_minutes(value: Optional[float]) -> str:
    if value is None:
        return "?"
    return f"{value:g}"


def gap_instruction(gap: Gap, words: int, section_titles: List[str]) -> str:
    """Kind-specific instruction for one gap."""
    if gap.kind is GapKind.MISSING_SECTION:
        return (
            f"Create this entire section from scratch with full details, examples and explanations. "
            f"Start it with the heading `### {gap.title}`."
        )
    if gap.kind is GapKind.UNDERDEVELOPED_SECTION:
        return (
            f"This section ALREADY EXISTS and is too thin. Write ONLY additional material for it "
            f"(more examples, explanations and detail). Label it `### {gap.title}` once; it will be "
            f"attached to the existing section, so do not restate what is already there."
        )
    if gap.kind is GapKind.MISSING_MAJOR_BLOCK:
        if gap.block is MajorBlock.TAGS:
            return (
                f"Write the `{MajorBlock.TAGS.heading}` block: one comma-separated line of 20+ real, "
                f"specific tags. No brackets or placeholders."
            )
        return (
            f"Write the `{MajorBlock.DESCRIPTION.heading}` block: a complete video description "
            f"with timestamps for each section."
        )
    if gap.kind is GapKind.GENERAL_EXPANSION:
        count = gap.section_count or max(len(section_titles), 1)
        per_section = words // count
        listed = "\n".join(f"   - {title}" for title in section_titles)
        return (
            f"Expand EACH of the {count} existing sections by about {per_section} words. For every "
            f"section, repeat its exact existing heading (`### Title`) followed ONLY by the new "
            f"material; it will be appended to that section.\n{listed}"
        )
    return (
        f"Add about {words} words of new material across the whole script: deeper explanations, "
        f"examples, data and smoother transitions. Never rewrite existing text."
    )


def gaps_section(gaps: List[Gap], fallback_words: int, section_titles: List[str]) -> str:
    """Numbered list of the gaps to fill, each with its budget and instruction."""
    blocks = []
    for number, gap in enumerate(gaps, start=1):
        words = gap.estimated_words or fallback_words
        lines = [
            f"{number}. **{gap.title}** ({gap.kind.value}, priority: {gap.priority.value}) - write ~{words} words",
        ]
        if gap.description:
            lines.append(f"   Description: {gap.description}")
        lines.append(f"   {gap_instruction(gap, words, section_titles)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def chunk_scope_section(chunk_info: ChunkInfo) -> str:
    """Boundaries for one part of a multi-part script."""
    lines = [
        f"**SCRIPT PART {chunk_info.chunk_number} of {chunk_info.total_chunks}**",
        f"This part covers minutes {_format_minutes(chunk_info.start_time)}-"
        f"{_format_minutes(chunk_info.end_time)} of the video. Stay within this part.",
    ]

    if chunk_info.is_last:
        lines.append(
            f"This is the FINAL part: it MUST include both the `{MajorBlock.DESCRIPTION.heading}` "
            f"block and the `{MajorBlock.TAGS.heading}` block."
        )
    else:
        lines.append(
            f"This is NOT the final part: do not write `{MajorBlock.DESCRIPTION.heading}` or "
            f"`{MajorBlock.TAGS.heading}` blocks."
        )

    if chunk_info.previously_covered_sections:
        lines.append("")
        lines.append("**ALREADY COVERED IN EARLIER PARTS - DO NOT WRITE ABOUT THESE AGAIN:**")
        lines.extend(f"❌ {section}" for section in chunk_info.previously_covered_sections)

    return "\n".join(lines)


def reference_section(sources: List[ReferenceSource], excerpt_chars: int) -> str:
    """Research snippets to ground the new material."""
    lines = ["**RESEARCH SOURCES TO USE:**"]
    for source in sources:
        excerpt = source.excerpt[:excerpt_chars]
        suffix = "..." if len(source.excerpt) > excerpt_chars else ""
        lines.append(f"- {source.title}: {excerpt}{suffix}")
    return "\n".join(lines)


def expansion_prompt(
    document: str,
    current_words: int,
    target_words: int,
    word_target: int,
    gap_text: str,
    chunk_text: str = "",
    reference_text: str = ""
) -> str:
    """Full prompt asking for only the missing content of a script.

    Args:
        document: The current script, given verbatim as read-only context
        current_words: Words in the current script
        target_words: Desired total length
        word_target: Words of new content required
        gap_text: Output of gaps_section()
        chunk_text: Output of chunk_scope_section(), or empty
        reference_text: Output of reference_section(), or empty

    Returns:
        LLM prompt string
    """
    chunk_block = f"\n{chunk_text}\n\n---\n" if chunk_text else ""
    reference_block = f"\n{reference_text}\n" if reference_text else ""

    return f"""You are expanding a YouTube script that is currently {current_words} words but needs to be {target_words} words.

**CURRENT SCRIPT (READ-ONLY CONTEXT - DO NOT REWRITE, REPEAT OR REORDER IT):**

{document}

---
{chunk_block}
**GAPS TO FILL:**

{gap_text}

---

**LENGTH REQUIREMENT (NON-NEGOTIABLE):**
Write at least {word_target} words of NEW content. This is a hard requirement - short output is unacceptable and will be rejected. Do not summarise; develop every point fully.

{FORMATTING_RULES}
{reference_block}
Maintain the same tone, voice and style as the existing script.

Write the new content now:"""
