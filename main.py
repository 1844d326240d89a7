"""Main CLI entry point for the script expander."""
import asyncio
import functools
import json
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from utils.logger import console as log_console, set_log_level, setup_logger
from expansion.gap_analyzer import GapAnalyzer
from expansion.models import ChunkInfo, ContentPoint, ExpansionState, ReferenceContext
from expansion.orchestrator import ScriptExpander
from expansion.prompt_builder import ExpansionPromptBuilder
from generation.providers import AnthropicProvider
import config

logger = setup_logger(__name__)
console = Console()

PRIORITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}


def _read_json(path: Optional[str]):
    if not path:
        return None
    try:
        return json.loads(Path(path).read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{path} is not valid JSON: {e}")


def _load_points(path: str) -> List[ContentPoint]:
    """Content points file: a JSON list, or an object with a "content_points" list."""
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get('content_points') or data.get('contentPoints') or []
    if not isinstance(data, list):
        raise click.BadParameter(f"{path} must contain a list of content points")
    return [ContentPoint.model_validate(point) for point in data]


def _resolve_target(target_words: Optional[int], minutes: Optional[float]) -> int:
    if target_words is not None:
        return target_words
    if minutes is not None:
        return int(minutes * config.WORDS_PER_MINUTE)
    raise click.UsageError("Provide --target-words or --minutes")


def script_options(func):
    """Options shared by every command."""
    @click.option('--script', 'script_path', required=True, type=click.Path(exists=True, dir_okay=False),
                  help='Path to the current script (markdown)')
    @click.option('--points', 'points_path', required=True, type=click.Path(exists=True, dir_okay=False),
                  help='JSON file with the required content points')
    @click.option('--target-words', type=int, default=None, help='Target length in words')
    @click.option('--minutes', type=float, default=None,
                  help=f'Target length in minutes ({config.WORDS_PER_MINUTE} words per minute)')
    @click.option('--chunk', 'chunk_path', type=click.Path(exists=True, dir_okay=False), default=None,
                  help='JSON file describing this part of a multi-part script')
    @functools.wraps(func)
    def wrapper(script_path, points_path, target_words, minutes, chunk_path, **kwargs):
        chunk_data = _read_json(chunk_path)
        return func(
            document=Path(script_path).read_text(encoding='utf-8'),
            content_points=_load_points(points_path),
            target_words=_resolve_target(target_words, minutes),
            chunk_info=ChunkInfo.model_validate(chunk_data) if chunk_data else None,
            **kwargs
        )
    return wrapper


def _load_references(path: Optional[str]) -> Optional[ReferenceContext]:
    data = _read_json(path)
    if data is None:
        return None
    if isinstance(data, list):
        data = {'sources': data}
    return ReferenceContext.model_validate(data)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
def cli(verbose):
    """Script Expander - fill the gaps in short video scripts"""
    if verbose:
        set_log_level("DEBUG")


@cli.command()
@script_options
def analyze(document, content_points, target_words, chunk_info):
    """Show which sections are missing or under-developed."""
    analysis = GapAnalyzer().analyze(document, content_points, target_words, chunk_info)

    summary = Table(show_header=False)
    summary.add_row("Current words", str(analysis.current_words))
    summary.add_row("Target words", str(analysis.target_words))
    summary.add_row("Words needed", str(analysis.words_needed))
    summary.add_row("Gaps", str(analysis.gap_count))
    console.print(summary)

    if not analysis.gaps:
        console.print("[green]✓ Nothing to expand[/green]")
        return

    table = Table(title="Gaps")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Priority")
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Words", justify="right")
    for number, gap in enumerate(analysis.gaps, start=1):
        style = PRIORITY_STYLES.get(gap.priority.value, "")
        table.add_row(
            str(number),
            f"[{style}]{gap.priority.value}[/{style}]" if style else gap.priority.value,
            gap.kind.value,
            gap.title,
            str(gap.estimated_words)
        )
    console.print(table)


@cli.command()
@script_options
@click.option('--references', 'references_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='JSON file with research sources')
def prompt(document, content_points, target_words, chunk_info, references_path):
    """Print the expansion prompt without calling the API."""
    analysis = GapAnalyzer().analyze(document, content_points, target_words, chunk_info)
    if not analysis.gaps:
        console.print("[yellow]No gaps found - no prompt to build[/yellow]")
        return

    request = ExpansionPromptBuilder().build(
        document, analysis, chunk_info, _load_references(references_path)
    )
    click.echo(request.prompt_text)
    console.print(
        f"\n[dim]model={request.model_params.model} "
        f"max_output_tokens={request.model_params.max_output_tokens} "
        f"temperature={request.model_params.temperature} "
        f"word_target={request.word_target}[/dim]"
    )


@cli.command()
@script_options
@click.option('--references', 'references_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='JSON file with research sources')
@click.option('--output', type=click.Path(dir_okay=False), default=None,
              help='Where to write the expanded script (stdout if omitted)')
def expand(document, content_points, target_words, chunk_info, references_path, output):
    """Expand a short script with the Anthropic API."""
    if not config.ANTHROPIC_API_KEY:
        console.print("[red]Error: ANTHROPIC_API_KEY not set in environment[/red]")
        raise SystemExit(1)

    provider = AnthropicProvider(api_key=config.ANTHROPIC_API_KEY)
    expander = ScriptExpander(provider)
    result = asyncio.run(expander.expand(
        document,
        content_points,
        target_words,
        chunk_info,
        _load_references(references_path)
    ))

    if output:
        Path(output).write_text(result.document, encoding='utf-8')
    else:
        click.echo(result.document)

    table = Table(show_header=False)
    table.add_row("State", result.state.value)
    table.add_row("Words", f"{result.analysis.current_words} → {result.final_words}")
    table.add_row("Target", str(result.analysis.target_words))
    table.add_row("Tokens used", f"{provider.total_tokens_used:,}")
    if output:
        table.add_row("Output", output)
    log_console.print(table)

    if result.state is ExpansionState.GENERATION_FAILED:
        raise SystemExit(2)


if __name__ == "__main__":
    cli()
