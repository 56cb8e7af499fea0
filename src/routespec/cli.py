from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from routespec.config import CompilerConfig, load_config
from routespec.document.export import dump_document
from routespec.errors import RouteSpecError
from routespec.orchestrator.pipeline import CompileResult, run_compile


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _config(config_path: Optional[Path], include_hidden: bool) -> CompilerConfig:
    try:
        config = load_config(config_path) if config_path else CompilerConfig()
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--config") from e
    if include_hidden:
        config = config.model_copy(update={"include_hidden": True})
    return config


def _compile(targets: List[str], config: CompilerConfig) -> CompileResult:
    try:
        return run_compile(targets, config)
    except ImportError as e:
        raise typer.BadParameter(str(e)) from e
    except ValueError as e:
        # unknown primitive names in type_overrides
        raise typer.BadParameter(str(e), param_hint="--config") from e
    except RouteSpecError as e:
        console.print(f"[bold red]error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


@app.command("compile")
def compile_(
    targets: List[str] = typer.Argument(..., help="Service classes as package.module:ClassName"),
    config_path: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, help="Config file (.yaml, .json or .toml)"),
    include_hidden: bool = typer.Option(False, help="Include services marked hidden"),
    title: Optional[str] = typer.Option(None, help="Document title"),
    version: Optional[str] = typer.Option(None, help="Document version"),
    format: str = typer.Option("json", help="Output format: json|yaml"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    _setup_logging(verbose)
    fmt = format.lower().strip()
    if fmt not in ("json", "yaml"):
        raise typer.BadParameter("format must be one of: json, yaml")

    config = _config(config_path, include_hidden)
    updates = {k: v for k, v in (("title", title), ("version", version)) if v is not None}
    if updates:
        config = config.model_copy(update=updates)

    result = _compile(targets, config)
    text = dump_document(result.swagger, fmt)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        console.print(
            f"[bold green]Wrote[/bold green] {fmt} document to: {out_path} "
            f"({result.operations} operations, {result.models} models)"
        )
    else:
        # plain print keeps the payload free of console markup
        print(text)


@app.command()
def routes(
    targets: List[str] = typer.Argument(..., help="Service classes as package.module:ClassName"),
    config_path: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, help="Config file (.yaml, .json or .toml)"),
    include_hidden: bool = typer.Option(False, help="Include services marked hidden"),
) -> None:
    _setup_logging(False)
    result = _compile(targets, _config(config_path, include_hidden))

    console.print(f"[bold]Operations:[/bold] {result.operations}")
    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("OPERATION")
    table.add_column("TAGS")

    for path, verb, op in sorted(result.document.operations(), key=lambda x: (x[0], x[1])):
        table.add_row(verb.upper(), path, op.operation_id, ", ".join(op.tags))

    console.print(table)


@app.command()
def models(
    targets: List[str] = typer.Argument(..., help="Service classes as package.module:ClassName"),
    config_path: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, help="Config file (.yaml, .json or .toml)"),
) -> None:
    _setup_logging(False)
    result = _compile(targets, _config(config_path, False))

    console.print(f"[bold]Models:[/bold] {result.models}")
    for name in sorted(result.document.definitions):
        model = result.document.definitions[name]
        console.print(f"  {escape(name)}  [dim]{model.kind}, {len(model.properties)} properties[/dim]")
    if result.unresolved:
        console.print(f"[bold red]Unresolved:[/bold red] {escape(', '.join(result.unresolved))}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
