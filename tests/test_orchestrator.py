"""Test the end-to-end expansion pass."""
import pytest

from expansion.models import ExpansionPolicy, ExpansionState
from expansion.orchestrator import ScriptExpander, expand_short_document
from generation.providers import GenerationError

POINTS = [{"title": "Intro"}, {"title": "Conclusion"}]


@pytest.mark.asyncio
async def test_short_script_gets_missing_section(words):
    """One Intro, one Conclusion, in that order."""
    calls = []

    def generator(prompt, params):
        calls.append(prompt)
        return f"I'll expand the following sections:\n\n### Conclusion\n{words(300)}"

    result = await expand_short_document("### Intro\nHello.", POINTS, 500, generator)

    assert len(calls) == 1
    assert result.count("### Intro") == 1
    assert result.count("### Conclusion") == 1
    assert result.index("### Intro") < result.index("### Conclusion")
    assert "I'll expand" not in result


@pytest.mark.asyncio
async def test_sufficient_script_is_untouched(make_provider, words):
    """No generation call when the script is already long enough."""
    document = f"### Intro\n{words(600)}"
    provider = make_provider("unused")

    result = await expand_short_document(document, POINTS, 500, provider)

    assert result == document
    assert provider.calls == []


@pytest.mark.asyncio
async def test_generation_failure_keeps_original(make_provider):
    """A failing generator degrades to the input script."""
    provider = make_provider(error=GenerationError("service unavailable"))
    result = await ScriptExpander(provider).expand("### Intro\nHello.", POINTS, 500)

    assert result.state is ExpansionState.GENERATION_FAILED
    assert result.document == "### Intro\nHello."
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_plain_exception_keeps_original():
    """Errors from a bare callable do not escape."""
    def generator(prompt, params):
        raise ConnectionError("offline")

    assert await expand_short_document("### Intro\nHello.", POINTS, 500, generator) == "### Intro\nHello."


@pytest.mark.asyncio
async def test_provider_transport_error_keeps_original(make_provider):
    """A provider raising its own error type still degrades to the input."""
    provider = make_provider(error=ConnectionError("offline"))

    assert await expand_short_document("### Intro\nHello.", POINTS, 500, provider) == "### Intro\nHello."


@pytest.mark.asyncio
async def test_malformed_response_keeps_original(make_provider):
    """A provider returning no text at all degrades to the input."""
    result = await ScriptExpander(make_provider(None)).expand("### Intro\nHello.", POINTS, 500)

    assert result.state is ExpansionState.GENERATION_FAILED
    assert result.document == "### Intro\nHello."


@pytest.mark.asyncio
async def test_timeout_keeps_original(make_provider):
    """A slow generator is abandoned after the policy timeout."""
    provider = make_provider("late", delay=1.0)
    policy = ExpansionPolicy(generation_timeout_seconds=0.05)

    result = await ScriptExpander(provider, policy).expand("### Intro\nHello.", POINTS, 500)

    assert result.state is ExpansionState.GENERATION_FAILED
    assert result.document == "### Intro\nHello."


@pytest.mark.asyncio
async def test_no_gaps_found(make_provider, words):
    """Short by a little with nothing missing: left as is."""
    document = f"### Intro\n{words(470)}\n\n## Description\nd\n\n## Tags\nt"
    provider = make_provider("unused")

    result = await ScriptExpander(provider).expand(document, [{"title": "Intro"}], 500)

    assert result.state is ExpansionState.NO_GAPS_FOUND
    assert result.document == document
    assert provider.calls == []


@pytest.mark.asyncio
async def test_final_chunk_adds_description_then_tags(make_provider, words):
    """The last part gains both blocks with Tags last."""
    document = f"### Intro\n{words(200)}"
    provider = make_provider(
        "## Description\nA summary of the video.\n\n## Tags\nbudgeting, saving, investing"
    )
    chunk = {"chunk_number": 3, "total_chunks": 3, "start_time": 10, "end_time": 15, "is_last": True}

    result = await ScriptExpander(provider).expand(document, [{"title": "Intro"}], 400, chunk)

    assert result.state is ExpansionState.MERGED
    assert result.document.index("## Description") < result.document.index("## Tags")
    assert result.document.endswith("## Tags\nbudgeting, saving, investing")
    assert "FINAL part" in provider.calls[0][0]


@pytest.mark.asyncio
async def test_result_reports_word_counts(make_provider, words):
    """The result carries the analysis, the request and the final length."""
    provider = make_provider(f"### Conclusion\n{words(300)}")
    result = await ScriptExpander(provider).expand("### Intro\nHello.", POINTS, 500)

    assert result.state is ExpansionState.MERGED
    assert result.analysis.current_words == 2
    assert result.request.word_target == 498
    # Intro, Hello., Conclusion + 300
    assert result.final_words == 303


@pytest.mark.asyncio
async def test_name_alias_for_content_points(make_provider):
    """Content points may use "name" instead of "title"."""
    provider = make_provider("unused")
    result = await ScriptExpander(provider).expand("### Intro\nHello.", [{"name": "Budget"}], 500)

    assert "Budget" in [gap.title for gap in result.analysis.gaps]


@pytest.mark.asyncio
async def test_reference_context_reaches_prompt(make_provider):
    """Research sources are passed through to the generator."""
    provider = make_provider("### Conclusion\nBye.")
    references = {"sources": [{"source_title": "Fed report", "source_content": "Rates rose."}]}

    await ScriptExpander(provider).expand("### Intro\nHello.", POINTS, 500, reference_context=references)

    assert "Fed report: Rates rose." in provider.calls[0][0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
