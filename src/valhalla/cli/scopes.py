"""valhalla scopes command - print the scope tree of a file."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.tree import Tree

from valhalla.config.loader import load_config
from valhalla.core.errors import ConfigError, UnitError
from valhalla.scopes.models import Scope, ScopeKind
from valhalla.session import AnalysisSession


def _label(scope: Scope) -> str:
    name = scope.name or ("" if scope.kind == ScopeKind.GLOBAL else "{}")
    label = f"[cyan]{scope.kind.value}[/cyan] [bold]{name}[/bold]"
    if scope.return_type or scope.value_type:
        label += f" [green]: {scope.declared_type}[/green]"
    if scope.inherits:
        label += f" [green]: {scope.inherits}[/green]"
    if scope.enum_values:
        label += f" [yellow]{{{', '.join(scope.enum_values)}}}[/yellow]"
    label += f" [dim]{scope.start_line + 1}-{scope.end_line}[/dim]"
    if scope.locals:
        label += " [dim]vars: " + ", ".join(v.name for v in scope.locals) + "[/dim]"
    return label


def build_tree(root: Scope) -> Tree:
    tree = Tree(_label(root))
    stack = [(root, tree)]
    while stack:
        scope, node = stack.pop()
        for child in scope.children:
            stack.append((child, node.add(_label(child))))
    return tree


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scopes_command(file: Path, as_json: bool) -> None:
    """Print the scope tree parsed from FILE."""
    try:
        session = AnalysisSession(load_config(Path.cwd()))
        roots = session.feed_path(file)
    except (ConfigError, UnitError) as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps([root.to_dict() for root in roots], indent=2))
        return
    console = Console()
    for root in roots:
        console.print(build_tree(root))
