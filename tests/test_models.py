"""Test Pydantic models."""
import pytest
from pydantic import ValidationError

from expansion.models import (
    ChunkInfo,
    ContentPoint,
    ExpansionPolicy,
    Gap,
    GapAnalysisResult,
    GapKind,
    GapPriority,
    ReferenceSource,
)
from structure.models import MajorBlock


def test_content_point_aliases():
    """Content points accept "title" or "name"."""
    assert ContentPoint.model_validate({"title": "Intro"}).title == "Intro"
    assert ContentPoint.model_validate({"name": "Intro", "description": "Hook"}).description == "Hook"
    assert ContentPoint().title == ""


def test_chunk_info_defaults():
    """Only the part numbers are required."""
    chunk = ChunkInfo(chunk_number=1, total_chunks=4)

    assert chunk.is_first is False
    assert chunk.is_last is False
    assert chunk.start_time is None
    assert chunk.previously_covered_sections == []


def test_reference_source_defaults():
    """Untitled sources get a placeholder title."""
    source = ReferenceSource.model_validate({"source_content": "Body"})

    assert source.title == "Untitled"
    assert source.excerpt == "Body"


def test_priority_rank_order():
    """Critical sorts first, low last."""
    ranked = sorted(GapPriority, key=lambda priority: priority.rank)
    assert ranked == [GapPriority.CRITICAL, GapPriority.HIGH, GapPriority.MEDIUM, GapPriority.LOW]


def test_top_gaps():
    """top_gaps keeps order and respects the limit."""
    gaps = [
        Gap(kind=GapKind.MISSING_SECTION, title=f"T{n}", priority=GapPriority.HIGH, estimated_words=10)
        for n in range(5)
    ]
    analysis = GapAnalysisResult(gaps=gaps, words_needed=50, current_words=0, target_words=50)

    assert [gap.title for gap in analysis.top_gaps(3)] == ["T0", "T1", "T2"]
    assert analysis.gap_count == 5
    assert analysis.has_kind(GapKind.MISSING_SECTION)
    assert not analysis.has_kind(GapKind.GENERAL_EXPANSION)


def test_policy_defaults():
    """Defaults match the documented constants."""
    policy = ExpansionPolicy()

    assert policy.underdeveloped_threshold == 0.4
    assert policy.max_gaps_per_request == 3
    assert policy.block_budget(MajorBlock.DESCRIPTION) == 150
    assert policy.block_budget(MajorBlock.TAGS) == 50


def test_policy_validation():
    """Out-of-range tunables are rejected."""
    with pytest.raises(ValidationError):
        ExpansionPolicy(underdeveloped_threshold=0)
    with pytest.raises(ValidationError):
        ExpansionPolicy(max_gaps_per_request=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
