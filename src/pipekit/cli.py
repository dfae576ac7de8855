"""Command-line interface for pipeline helpers."""

from __future__ import annotations

import json
import os
import sys

import typer
from rich.console import Console
from rich.table import Table

from pipekit.clients.webhook import send_message
from pipekit.deps import build_deps
from pipekit.env import ENV_VARS
from pipekit.errors import ConfigError
from pipekit.files import read_files_to_map, read_subdirectories_to_map
from pipekit.io import read_config, write_output
from pipekit.job_params import map_to_job_params
from pipekit.mapping import flatten_nested_map
from pipekit.templating import replace_variables_in_map
from pipekit.text import password_generator

app = typer.Typer(
    name="pipekit",
    help="Helpers for CI pipeline scripts.",
    no_args_is_help=True,
)

console = Console()


@app.command("notify")
def notify_cmd(
    url: str = typer.Argument(..., help="Webhook URL including its token"),
    text: str | None = typer.Option(
        None,
        "--text",
        "-t",
        help="Message text (default: read from --file or stdin)",
    ),
    file: str | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Read message text from this file",
    ),
    verbose: int = typer.Option(
        1,
        "--verbose",
        "-v",
        min=0,
        max=2,
        help="0 silent, 1 status line, 2 full response",
    ),
    limit: int = typer.Option(
        4000,
        "--limit",
        help="Maximum length of a single message",
    ),
) -> None:
    """Post a message to a chat webhook, split into chunks when too long."""
    if text is None:
        if file:
            with open(file, encoding="utf-8") as f:
                text = f.read()
        else:
            text = sys.stdin.read()

    if not text.strip():
        console.print("[red]Error:[/red] Nothing to send")
        raise typer.Exit(code=1)

    with build_deps() as deps:
        delivered = send_message(deps.http, url, text, verbose=verbose, limit=limit)

    raise typer.Exit(code=0 if delivered else 1)


@app.command("render")
def render_cmd(
    template: str = typer.Argument(..., help="Template map: YAML/JSON file or inline string"),
    values: list[str] | None = typer.Option(
        None,
        "--values",
        "-V",
        help="Directory of value files (subdirectories are read too); repeatable",
    ),
    exclude: str | None = typer.Option(
        None,
        "--exclude",
        help="Regex of subdirectory names to skip",
    ),
    no_data: str | None = typer.Option(
        None,
        "--no-data",
        help="Replacement for variables without a value (default: keep $name)",
    ),
    output: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the rendered map to this JSON file instead of stdout",
    ),
) -> None:
    """Render $variables of a template map with values read from files."""
    try:
        params = read_config(template)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    binding: dict[str, str] = {}
    for directory in values or []:
        binding.update(read_files_to_map(directory))
        binding.update(read_subdirectories_to_map(directory, exclude_regex=exclude))

    with build_deps():
        rendered = replace_variables_in_map(params, binding, no_data)

    if output:
        write_output(output, rendered)
    else:
        console.print_json(json.dumps(rendered, ensure_ascii=False))


@app.command("flatten")
def flatten_cmd(
    source: str = typer.Argument(..., help="Config map: YAML/JSON file or inline string"),
) -> None:
    """Flatten one level of nesting in a config map."""
    try:
        config = read_config(source)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    console.print_json(json.dumps(flatten_nested_map(config), default=str))


@app.command("job-params")
def job_params_cmd(
    source: str = typer.Argument(..., help="Job config: YAML/JSON file or inline string"),
    check_name: bool = typer.Option(
        True,
        "--check-name/--no-check-name",
        help="Require a visible 'name' in the config",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print parameters as JSON",
    ),
) -> None:
    """Show the downstream job parameters a config produces."""
    try:
        config = read_config(source)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    with build_deps():
        params = map_to_job_params(config, check_name=check_name)

    if not params:
        console.print("[yellow]Config produces no job parameters.[/yellow]")
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(json.dumps([p.to_dict() for p in params]))
        return

    table = Table(title=f"Parameters for {config.get('jobname')}")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="dim")
    table.add_column("Value", style="green")

    for param in params:
        table.add_row(param.name, param.kind, str(param.value))

    console.print(table)


@app.command("password")
def password_cmd(
    length: int = typer.Argument(16, min=1, help="Number of characters"),
) -> None:
    """Generate a random password without look-alike characters."""
    typer.echo(password_generator(length))


@app.command("env")
def env_cmd() -> None:
    """Show the job environment variables pipekit reads."""
    table = Table(title="Pipeline Environment Variables")
    table.add_column("Variable", style="cyan", no_wrap=True)
    table.add_column("Current Value", style="green")

    for env_var in sorted(ENV_VARS.values()):
        value = os.environ.get(env_var, "[not set]")
        if len(value) > 50:
            value = value[:47] + "..."
        table.add_row(env_var, value)

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
