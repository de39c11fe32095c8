"""CLI for teleprompter - manage prompts in a remote prompt registry."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import click
import httpx
import structlog
import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .errors import InitializationError, TeleprompterError
from .http import DEFAULT_TIMEOUT, RegistryClient
from .prompt import Prompt, PromptInput

T = TypeVar("T")

console = Console()
error_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send structlog output to stderr, at DEBUG when verbose and WARNING otherwise."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        # resolve stderr per logger so redirected streams are honoured
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
    )


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a client call, turning its errors into a red message and exit code 1."""
    try:
        return asyncio.run(coro)
    except InitializationError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        error_console.print("[dim]Set --base-url or TELEPROMPTER_URL.[/dim]")
        sys.exit(1)
    except TeleprompterError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except httpx.HTTPError as e:
        error_console.print(f"[red]Request failed:[/red] {e}")
        sys.exit(1)


def preview(body: str, width: int = 50) -> str:
    """Single-line preview of a prompt body."""
    flat = " ".join(body.split())
    return flat[:width] + "..." if len(flat) > width else flat


def parse_vars(pairs: tuple) -> dict[str, str]:
    """Parse ``key=value`` pairs given with --var."""
    variables = {}
    for pair in pairs:
        if "=" not in pair:
            error_console.print(f"[red]Invalid variable format '{pair}'. Use key=value.[/red]")
            sys.exit(1)
        key, value = pair.split("=", 1)
        variables[key] = value
    return variables


def load_prompt_file(path: Path) -> PromptInput:
    """Load a prompt from a YAML file with ``id``/``body`` (or ``name``/``template``) keys."""
    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} does not contain a mapping", param_hint="FILE")

    prompt_id = data.get("id") or data.get("name") or path.stem
    body = data.get("body", data.get("template"))
    if body is None:
        raise click.BadParameter(f"{path} has no 'body' field", param_hint="FILE")
    return PromptInput(id=str(prompt_id), body=str(body))


def show_prompt(prompt: Prompt) -> None:
    console.print(Panel(f"[bold cyan]{prompt.id}[/bold cyan] v{prompt.version}"))
    syntax = Syntax(prompt.body, "handlebars", theme="monokai", line_numbers=True)
    console.print(syntax)


@click.group()
@click.option(
    "--base-url",
    "-u",
    envvar="TELEPROMPTER_URL",
    default=None,
    help="Base URL of the prompt registry (env: TELEPROMPTER_URL)",
)
@click.option(
    "--timeout",
    envvar="TELEPROMPTER_TIMEOUT",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Request timeout in seconds (env: TELEPROMPTER_TIMEOUT)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log requests to stderr")
@click.pass_context
def cli(ctx: click.Context, base_url: Optional[str], timeout: float, verbose: bool) -> None:
    """Teleprompter - versioned prompt templates in a remote registry."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    if "client" not in ctx.obj:
        ctx.obj["client"] = RegistryClient(base_url, timeout=timeout)


@cli.command("list")
@click.pass_context
def list_prompts(ctx: click.Context) -> None:
    """List the current version of every prompt."""
    client: RegistryClient = ctx.obj["client"]
    prompts = run(client.list_prompts())

    if not prompts:
        console.print("[yellow]No prompts found.[/yellow]")
        return

    table = Table(title="Prompts", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Version", style="magenta")
    table.add_column("Body", style="dim")

    for prompt in prompts:
        table.add_row(prompt.id, f"v{prompt.version}", preview(prompt.body))

    console.print(table)


@cli.command()
@click.argument("prompt_id")
@click.option("--version", "-V", type=int, default=None, help="Specific version to show")
@click.pass_context
def show(ctx: click.Context, prompt_id: str, version: Optional[int]) -> None:
    """Show a prompt's body."""
    client: RegistryClient = ctx.obj["client"]

    if version is None:
        prompt = run(client.get_prompt(prompt_id))
    else:
        versions = run(client.get_prompt_versions(prompt_id))
        prompt = next((p for p in versions if p.version == version), None)
        if prompt is None:
            error_console.print(f"[red]Prompt '{prompt_id}' has no version {version}.[/red]")
            sys.exit(1)

    show_prompt(prompt)


@cli.command()
@click.argument("prompt_id")
@click.pass_context
def versions(ctx: click.Context, prompt_id: str) -> None:
    """List all versions of a prompt."""
    client: RegistryClient = ctx.obj["client"]
    history = run(client.get_prompt_versions(prompt_id))

    if not history:
        console.print(f"[yellow]No versions found for '{prompt_id}'.[/yellow]")
        return

    current = max(p.version for p in history)
    table = Table(title=f"Versions of {prompt_id}", box=box.ROUNDED)
    table.add_column("Version", style="magenta")
    table.add_column("Current", style="green")
    table.add_column("Body", style="dim")

    for prompt in history:
        table.add_row(f"v{prompt.version}", "*" if prompt.version == current else "", preview(prompt.body))

    console.print(table)


@cli.command()
@click.argument("file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--id", "prompt_id", default=None, help="Prompt id (overrides the file)")
@click.option("--body", "-b", default=None, help="Prompt body (overrides the file)")
@click.pass_context
def push(ctx: click.Context, file: Optional[Path], prompt_id: Optional[str], body: Optional[str]) -> None:
    """Write a prompt, creating a new version if it already exists."""
    client: RegistryClient = ctx.obj["client"]

    if file is not None:
        loaded = load_prompt_file(file)
        prompt = PromptInput(id=prompt_id or loaded.id, body=body if body is not None else loaded.body)
    elif prompt_id and body is not None:
        prompt = PromptInput(id=prompt_id, body=body)
    else:
        raise click.UsageError("Give a FILE, or both --id and --body.")

    run(client.write_prompt(prompt))
    console.print(f"[green]Wrote prompt:[/green] {prompt.id}")


@cli.command()
@click.argument("prompt_id")
@click.pass_context
def delete(ctx: click.Context, prompt_id: str) -> None:
    """Delete a prompt."""
    client: RegistryClient = ctx.obj["client"]
    run(client.delete_prompt(prompt_id))
    console.print(f"[green]Deleted prompt:[/green] {prompt_id}")


@cli.command()
@click.argument("prompt_id")
@click.argument("version", type=int)
@click.pass_context
def rollback(ctx: click.Context, prompt_id: str, version: int) -> None:
    """Make an earlier version of a prompt current again."""
    client: RegistryClient = ctx.obj["client"]
    run(client.rollback_prompt(prompt_id, version))
    console.print(f"[green]Rolled back[/green] {prompt_id} [green]to the body of[/green] v{version}")


@cli.command()
@click.argument("prompt_id")
@click.option("--var", "-s", multiple=True, help="Variable in key=value format")
@click.option(
    "--context",
    "context_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML or JSON file with the render context",
)
@click.option("--raw", is_flag=True, help="Print only the rendered text")
@click.pass_context
def render(
    ctx: click.Context, prompt_id: str, var: tuple, context_file: Optional[Path], raw: bool
) -> None:
    """Render the current version of a prompt with Mustache variables."""
    client: RegistryClient = ctx.obj["client"]

    context: dict[str, Any] = {}
    if context_file is not None:
        with open(context_file, "r") as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            error_console.print(f"[red]Context file {context_file} must contain a mapping.[/red]")
            sys.exit(1)
        context.update(loaded or {})
    context.update(parse_vars(var))

    prompt = run(client.get_prompt(prompt_id))
    rendered = prompt.render(context)

    if raw:
        click.echo(rendered, nl=False)
    else:
        console.print(Panel(rendered, title=f"Rendered: {prompt.id} v{prompt.version}"))


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
