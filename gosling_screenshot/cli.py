"""
Command Line Interface
======================

``gosling-screenshot INPUT [--format png|jpeg|webp] [--outdir DIR]``

Stdout receives one line per generated image and a completion notice.
Failures, skip notices and logs go to stderr.
"""

from typing import Optional
import asyncio
import sys
from pathlib import Path

import typer

from gosling_screenshot.config.logging import setup_logging
from gosling_screenshot.config.settings import get_settings
from gosling_screenshot.core.batch import ConfigurationError, NotFoundError, run_batch
from gosling_screenshot.models.schemas import RenderOptions, RenderResult

app = typer.Typer(
    help="Render Gosling visualization specs to PNG, JPEG or WebP images.",
    add_completion=False,
)


def _report(result: RenderResult) -> None:
    if result.succeeded:
        typer.echo(f"Image generated: {result.job.destination}")
    else:
        typer.echo(f"Error processing file {result.job.name}: {result.error}", err=True)


def _build_options(
    timeout: Optional[int],
    use_tempfile: bool,
    gosling_version: Optional[str],
    higlass_version: Optional[str],
    transparent: bool = False,
) -> RenderOptions:
    options = get_settings().render_options()

    library_updates = {}
    if gosling_version:
        library_updates["gosling_version"] = gosling_version
    if higlass_version:
        library_updates["higlass_version"] = higlass_version

    updates = {}
    if library_updates:
        updates["libraries"] = options.libraries.model_copy(update=library_updates)
    if timeout:
        updates["selector_timeout"] = timeout
    if use_tempfile:
        updates["load_via_tempfile"] = True
    if transparent:
        updates["transparent_background"] = True

    return options.model_copy(update=updates) if updates else options


@app.command()
def convert(
    input_path: Path = typer.Argument(
        ..., metavar="INPUT", help="Spec file or directory of spec files"
    ),
    fmt: Optional[str] = typer.Option(
        None, "--format", "-f", help="Output image format: png, jpeg or webp [default: png]"
    ),
    outdir: Optional[Path] = typer.Option(
        None,
        "--outdir",
        "-d",
        help="Output directory; required for directory inputs, defaults to the input's directory",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Exact output file for a single spec file"
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", min=1, help="Milliseconds to wait for the visualization to render"
    ),
    use_tempfile: bool = typer.Option(
        False, "--tempfile", help="Load each page from a temporary file instead of in memory"
    ),
    gosling_version: Optional[str] = typer.Option(
        None, "--gosling-version", help="Gosling version loaded by the page"
    ),
    higlass_version: Optional[str] = typer.Option(
        None, "--higlass-version", help="Higlass version loaded by the page"
    ),
    transparent: bool = typer.Option(
        False, "--transparent", help="Omit the page background in PNG and WebP images"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    setup_logging("DEBUG" if verbose else None)
    options = _build_options(
        timeout, use_tempfile, gosling_version, higlass_version, transparent
    )

    try:
        summary = asyncio.run(
            run_batch(
                input_path,
                output_dir=outdir,
                fmt=fmt,
                options=options,
                output_path=output,
                on_result=_report,
            )
        )
    except (ConfigurationError, NotFoundError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    except OSError as exc:
        typer.echo(f"Error reading the input directory: {exc}", err=True)
        raise typer.Exit(1) from exc
    except KeyboardInterrupt as exc:
        typer.echo("Aborted!", err=True)
        raise typer.Exit(130) from exc

    # Per-file failures are reported above and do not change the exit status.
    typer.echo(f"Processing complete: {summary.succeeded} succeeded, {summary.failed} failed.")


def main() -> None:
    """Console entry point; usage errors exit with status 1."""
    try:
        app()
    except SystemExit as exc:
        if exc.code == 2:
            sys.exit(1)
        raise


if __name__ == "__main__":
    main()
