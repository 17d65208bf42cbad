"""valhalla complete command - print suggestions for a cursor position."""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from valhalla.completion.candidates import SuggestionCandidate
from valhalla.completion.context import CompletionRequest
from valhalla.config.loader import load_config
from valhalla.core.errors import ConfigError, UnitError
from valhalla.session import AnalysisSession


def _line_before_cursor(path: Path, row: int, column: int | None) -> str:
    lines = path.read_text(encoding="utf-8", errors="replace").replace("\r\n", "\n").split("\n")
    if row >= len(lines):
        raise click.BadParameter(f"{path} has {len(lines)} lines", param_hint="--line")
    text = lines[row]
    return text if column is None else text[: max(column - 1, 0)]


async def _complete(
    session: AnalysisSession,
    path: Path,
    request: CompletionRequest,
    vapi_dir: Path | None,
) -> list[SuggestionCandidate]:
    session.start(vapi_dir)
    try:
        session.feed_path(path, external=False)
        return await session.complete(request)
    finally:
        await session.close()


def _render_table(candidates: list[SuggestionCandidate]) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("#", style="dim", justify="right")
    table.add_column("suggestion", style="cyan")
    table.add_column("kind", style="magenta")
    table.add_column("type", style="green")
    table.add_column("insert")
    for candidate in candidates:
        table.add_row(
            str(candidate.sort_key),
            candidate.display_text,
            candidate.kind.value,
            candidate.left_label or "",
            candidate.insert_text,
        )
    return table


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--line", "line_no", type=click.IntRange(min=1), required=True, help="1-based line")
@click.option(
    "--column",
    type=click.IntRange(min=1),
    default=None,
    help="1-based cursor column (default: end of line)",
)
@click.option("--prefix", default=None, help="Word being typed (default: taken from the line)")
@click.option(
    "--vapi-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory of .vapi declaration files",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def complete_command(
    file: Path,
    line_no: int,
    column: int | None,
    prefix: str | None,
    vapi_dir: Path | None,
    as_json: bool,
) -> None:
    """Print completion suggestions for FILE at --line/--column."""
    try:
        config = load_config(Path.cwd())
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    row = line_no - 1
    line = _line_before_cursor(file, row, column)
    if not line.strip():
        # Nothing typed: no suggestions.
        return

    request = CompletionRequest(
        unit_id=str(file),
        row=row,
        column=len(line),
        line=line,
        prefix=prefix,
    )
    try:
        session = AnalysisSession(config)
        candidates = asyncio.run(_complete(session, file, request, vapi_dir))
    except (ConfigError, UnitError) as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps([c.to_dict() for c in candidates], indent=2))
        return
    if not candidates:
        click.echo("No suggestions")
        return
    Console().print(_render_table(candidates))
