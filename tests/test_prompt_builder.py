"""Test expansion prompt construction."""
import pytest

from expansion.gap_analyzer import GapAnalyzer
from expansion.models import (
    ChunkInfo,
    ContentPoint,
    ExpansionPolicy,
    Gap,
    GapAnalysisResult,
    GapKind,
    GapPriority,
    ReferenceContext,
    ReferenceSource,
)
from expansion.prompt_builder import ExpansionPromptBuilder

DOCUMENT = "### Intro\nHello."


def missing(title, words=100):
    return Gap(kind=GapKind.MISSING_SECTION, title=title, priority=GapPriority.HIGH, estimated_words=words)


def analysis_with(gaps, words_needed=498):
    return GapAnalysisResult(gaps=gaps, words_needed=words_needed, current_words=2, target_words=2 + words_needed)


def test_prompt_contains_script_and_targets():
    """The whole script is restated, with current, target and required words."""
    analysis = GapAnalyzer().analyze(DOCUMENT, [ContentPoint(title="Intro"), ContentPoint(title="Conclusion")], 500)
    request = ExpansionPromptBuilder().build(DOCUMENT, analysis)

    assert DOCUMENT in request.prompt_text
    assert "currently 2 words but needs to be 500 words" in request.prompt_text
    assert "at least 498 words" in request.prompt_text
    assert request.word_target == 498


def test_only_top_three_gaps_are_requested():
    """At most three gaps go into one request."""
    gaps = [missing(f"Topic {n}") for n in range(1, 6)]
    request = ExpansionPromptBuilder().build(DOCUMENT, analysis_with(gaps))

    assert [g.title for g in request.gaps] == ["Topic 1", "Topic 2", "Topic 3"]
    assert "**Topic 3**" in request.prompt_text
    assert "Topic 4" not in request.prompt_text


def test_gap_limit_is_configurable():
    """max_gaps_per_request comes from the policy."""
    gaps = [missing(f"Topic {n}") for n in range(1, 6)]
    request = ExpansionPromptBuilder(ExpansionPolicy(max_gaps_per_request=1)).build(DOCUMENT, analysis_with(gaps))

    assert len(request.gaps) == 1


def test_gap_instructions_by_kind():
    """Missing sections are written from scratch; thin ones only get additions."""
    gaps = [
        missing("Conclusion"),
        Gap(kind=GapKind.UNDERDEVELOPED_SECTION, title="Intro", priority=GapPriority.MEDIUM, estimated_words=100),
    ]
    prompt_text = ExpansionPromptBuilder().build(DOCUMENT, analysis_with(gaps)).prompt_text

    assert "from scratch" in prompt_text
    assert "`### Conclusion`" in prompt_text
    assert "ALREADY EXISTS" in prompt_text


def test_general_expansion_lists_sections():
    """Document-wide expansion names each section and a per-section budget."""
    document = "### A\nOne.\n\n### B\nTwo."
    gap = Gap(
        kind=GapKind.GENERAL_EXPANSION,
        title="Existing sections",
        priority=GapPriority.LOW,
        estimated_words=300,
        section_count=2
    )
    prompt_text = ExpansionPromptBuilder().build(document, analysis_with([gap], 300)).prompt_text

    assert "EACH of the 2 existing sections by about 150 words" in prompt_text
    assert "   - A\n   - B" in prompt_text


def test_formatting_rules_present():
    """Heading levels and flat comma-separated tags are spelled out."""
    prompt_text = ExpansionPromptBuilder().build(DOCUMENT, analysis_with([missing("X")])).prompt_text

    assert "`## Tags`" in prompt_text
    assert "comma-separated" in prompt_text
    assert "No introductions or commentary" in prompt_text


def test_max_output_tokens_scales_with_target():
    """Two tokens per word, capped at the ceiling."""
    builder = ExpansionPromptBuilder()

    assert builder.max_output_tokens(498) == 996
    assert builder.max_output_tokens(10_000) == 8192
    assert builder.max_output_tokens(0) == 1

    request = builder.build(DOCUMENT, analysis_with([missing("X")], 498))
    assert request.model_params.max_output_tokens == 996
    assert request.model_params.temperature == 0.7


def test_chunk_scope_for_middle_part():
    """Part number, minute range and earlier sections are stated; blocks are forbidden."""
    chunk = ChunkInfo(
        chunk_number=2,
        total_chunks=3,
        start_time=5,
        end_time=10,
        previously_covered_sections=["Intro", "Budgeting"]
    )
    prompt_text = ExpansionPromptBuilder().build(DOCUMENT, analysis_with([missing("X")]), chunk).prompt_text

    assert "SCRIPT PART 2 of 3" in prompt_text
    assert "minutes 5-10" in prompt_text
    assert "NOT the final part" in prompt_text
    assert "❌ Intro" in prompt_text
    assert "❌ Budgeting" in prompt_text


def test_chunk_scope_for_final_part():
    """The final part must produce both closing blocks."""
    chunk = ChunkInfo(chunk_number=3, total_chunks=3, start_time=10, end_time=15.5, is_last=True)
    prompt_text = ExpansionPromptBuilder().build(DOCUMENT, analysis_with([missing("X")]), chunk).prompt_text

    assert "minutes 10-15.5" in prompt_text
    assert "FINAL part" in prompt_text
    assert "MUST include both" in prompt_text


def test_reference_sources_are_capped_and_truncated():
    """At most five sources, each excerpt cut to 200 characters."""
    sources = [ReferenceSource(title=f"Source {n}", excerpt="x" * 250) for n in range(1, 8)]
    prompt_text = ExpansionPromptBuilder().build(
        DOCUMENT, analysis_with([missing("X")]), reference_context=ReferenceContext(sources=sources)
    ).prompt_text

    assert "Source 5" in prompt_text
    assert "Source 6" not in prompt_text
    assert f"- Source 1: {'x' * 200}..." in prompt_text
    assert "x" * 201 not in prompt_text


def test_reference_aliases():
    """Sources accept source_title / source_content keys."""
    context = ReferenceContext.model_validate({"sources": [{"source_title": "Fed data", "source_content": "Rates"}]})
    prompt_text = ExpansionPromptBuilder().build(
        DOCUMENT, analysis_with([missing("X")]), reference_context=context
    ).prompt_text

    assert "- Fed data: Rates" in prompt_text


def test_build_without_gaps_raises():
    """There is nothing to ask for without gaps."""
    with pytest.raises(ValueError):
        ExpansionPromptBuilder().build(DOCUMENT, analysis_with([]))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
