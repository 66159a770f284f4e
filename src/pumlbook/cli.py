"""mdbook-plantuml CLI — mdBook preprocessor entry point and standalone renderer."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from . import __version__
from .core.config import DEFAULT_MAX_DEPTH, PlantumlConfig
from .core.models import Backend, OutputMode
from .generators.diagram_compiler import DiagramCompiler
from .generators.plantuml_renderer import make_gateway
from .generators.render_cache import RenderCache
from .preprocessor import Preprocessor

# stdout carries the mdBook JSON protocol
console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="mdbook-plantuml")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """mdbook-plantuml — render PlantUML diagrams in mdBook chapters.

    Without a sub-command, reads ``[context, book]`` JSON from stdin and
    writes the processed book to stdout, as mdBook expects.
    """
    _setup_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    raw = sys.stdin.read()
    try:
        output = Preprocessor().handle(raw)
    except ValueError as exc:
        raise click.ClickException(f"Invalid preprocessor input: {exc}") from exc
    except OSError as exc:
        raise click.ClickException(f"Could not prepare the diagram directory: {exc}") from exc
    click.echo(output)


@main.command()
@click.argument("renderer")
def supports(renderer: str):
    """Tell mdBook whether RENDERER is supported (exit status 0 = yes)."""
    sys.exit(0 if Preprocessor().supports(renderer) else 1)


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o", "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the result here instead of stdout.",
)
@click.option(
    "--plantuml-cmd",
    default="plantuml",
    show_default=True,
    help="PlantUML executable, optionally with arguments.",
)
@click.option(
    "--backend",
    type=click.Choice([b.value for b in Backend], case_sensitive=False),
    default=Backend.CLI.value,
    show_default=True,
    help="Render with the local CLI or a PlantUML server.",
)
@click.option(
    "--server-url",
    default="https://www.plantuml.com/plantuml",
    show_default=True,
    help="PlantUML server base URL (server backend).",
)
@click.option(
    "--pipe/--no-pipe",
    default=True,
    show_default=True,
    help="Stream through stdin/stdout or let PlantUML name its output file.",
)
@click.option(
    "--output-mode",
    type=click.Choice([m.value for m in OutputMode], case_sensitive=False),
    default=OutputMode.INLINE.value,
    show_default=True,
    help="Embed SVGs as base64 data URIs or link to the artifact files.",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Artifact directory (default: .plantuml_cache next to SOURCE).",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    help="Maximum nesting of {{#plantuml ...}} includes.",
)
def render(
    source: Path,
    output_path: Path | None,
    plantuml_cmd: str,
    backend: str,
    server_url: str,
    pipe: bool,
    output_mode: str,
    cache_dir: Path | None,
    max_depth: int,
):
    """Render the diagrams of a single Markdown file SOURCE."""
    try:
        config = PlantumlConfig(
            plantuml_cmd=plantuml_cmd,
            backend=backend.lower(),
            server_url=server_url,
            pipe=pipe,
            output_mode=output_mode.lower(),
            max_depth=max_depth,
        )
    except ValidationError as exc:
        raise click.BadParameter(str(exc)) from exc

    base_dir = source.resolve().parent
    artifact_dir = (cache_dir or base_dir / config.cache_dir).resolve()
    try:
        artifact_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise click.ClickException(f"Could not create {artifact_dir}: {exc}") from exc

    compiler = DiagramCompiler(
        RenderCache(artifact_dir, make_gateway(config)),
        output_mode=config.output_mode,
        max_depth=config.max_depth,
        output_type=config.format,
    )
    result = compiler.process(source.read_text(encoding="utf-8"), base_dir, source=str(source))

    if output_path is None:
        click.echo(result, nl=False)
        return

    output_path.write_text(result, encoding="utf-8")
    console.print(f"[green]✓[/] Wrote {output_path} ([dim]artifacts in {artifact_dir}[/])")
