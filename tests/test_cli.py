"""Test the command-line interface."""
import json
import logging

import pytest
from click.testing import CliRunner

from main import cli
from utils.logger import set_log_level


@pytest.fixture
def script_files(tmp_path):
    script = tmp_path / "script.md"
    script.write_text("### Intro\nHello.", encoding="utf-8")
    points = tmp_path / "points.json"
    points.write_text(json.dumps([{"title": "Intro"}, {"title": "Conclusion"}]), encoding="utf-8")
    return str(script), str(points)


def test_analyze_lists_gaps(script_files):
    """analyze prints the word arithmetic and each gap."""
    script, points = script_files
    result = CliRunner().invoke(cli, ["analyze", "--script", script, "--points", points, "--target-words", "500"])

    assert result.exit_code == 0
    assert "498" in result.output
    assert "Conclusion" in result.output
    assert "Description" in result.output


def test_analyze_with_minutes(script_files):
    """--minutes converts to words at the speaking rate."""
    script, points = script_files
    result = CliRunner().invoke(cli, ["analyze", "--script", script, "--points", points, "--minutes", "2"])

    assert result.exit_code == 0
    assert "300" in result.output


def test_analyze_requires_target(script_files):
    """Either --target-words or --minutes is needed."""
    script, points = script_files
    result = CliRunner().invoke(cli, ["analyze", "--script", script, "--points", points])

    assert result.exit_code != 0
    assert "--target-words" in result.output


def test_prompt_prints_prompt(script_files, tmp_path):
    """prompt shows the generated prompt, including the chunk scope."""
    script, points = script_files
    chunk = tmp_path / "chunk.json"
    chunk.write_text(json.dumps({"chunk_number": 2, "total_chunks": 2, "is_last": True}), encoding="utf-8")

    result = CliRunner().invoke(cli, [
        "prompt", "--script", script, "--points", points, "--target-words", "500", "--chunk", str(chunk)
    ])

    assert result.exit_code == 0
    assert "SCRIPT PART 2 of 2" in result.output
    assert "### Intro\nHello." in result.output


def test_points_object_form(tmp_path):
    """Points may be wrapped in a {"content_points": [...]} object."""
    script = tmp_path / "script.md"
    script.write_text("### Intro\nHello.", encoding="utf-8")
    points = tmp_path / "points.json"
    points.write_text(json.dumps({"content_points": [{"name": "Budget"}]}), encoding="utf-8")

    result = CliRunner().invoke(cli, [
        "analyze", "--script", str(script), "--points", str(points), "--target-words", "500"
    ])

    assert result.exit_code == 0
    assert "Budget" in result.output


def test_verbose_sets_debug_level(script_files):
    """-v switches project loggers to DEBUG."""
    script, points = script_files
    result = CliRunner().invoke(cli, ["-v", "analyze", "--script", script, "--points", points, "--target-words", "500"])

    assert result.exit_code == 0
    assert logging.getLogger("expansion.gap_analyzer").level == logging.DEBUG
    set_log_level("INFO")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
