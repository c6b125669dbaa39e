"""Command line interface for Redactpad."""

import asyncio
import logging
import sys
from pathlib import Path

import click

from .config import get_config, load_config
from .errors import RedactpadError
from .marks import load_rectangles
from .pdf import describe_document
from .pipeline import validate_rectangles
from .session import RedactionSession


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.version_option(version="0.1.0")
def main():
    """Redactpad - burn rectangular redactions into PDF pages."""
    pass


@main.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("marks_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output PDF path (default: <input>_redacted.pdf)"
)
@click.option(
    "--scale",
    type=float,
    default=None,
    help="Render scale in pixels per point (default: from config, 2.0)"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Log each page as it is processed"
)
def apply(
    pdf_path: Path,
    marks_path: Path,
    output: Path | None,
    scale: float | None,
    config_path: Path | None,
    verbose: bool,
):
    """
    Apply redaction marks to a PDF.

    PDF_PATH is the input PDF. MARKS_PATH is a JSON or CSV file of
    normalized rectangles (id, page, x, y, width, height).
    """
    _setup_logging(verbose)

    try:
        config = load_config(config_path)
        if scale is not None:
            if scale <= 0:
                raise click.BadParameter("must be positive", param_hint="--scale")
            config.pipeline.render_scale = scale

        rectangles = load_rectangles(marks_path)
        validate_rectangles(rectangles)
        session = RedactionSession(original_document=pdf_path.read_bytes(), config=config)
        session.add_rectangles(rectangles)

        result = asyncio.run(session.apply())

        if output is None:
            output = pdf_path.with_name(f"{pdf_path.stem}_redacted.pdf")
        output.write_bytes(result)
        click.echo(
            f"Applied {session.state.rectangles.total} redactions to {output}",
            err=True,
        )

    except (RedactpadError, ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def info(pdf_path: Path):
    """Show page count and page sizes of a PDF."""
    try:
        descriptor = describe_document(pdf_path)
    except RedactpadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Pages: {descriptor.page_count}")
    for page in descriptor.pages:
        click.echo(f"  {page.page_number}: {page.width:.1f} x {page.height:.1f} pt")


@main.command()
@click.option("--host", default=None, help="Interface to bind (default: server.host, localhost)")
@click.option("--port", default=None, type=click.IntRange(1, 65535), help="Port (default: server.port)")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file"
)
@click.option("--reload", is_flag=True, help="Restart on code changes (development)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def serve(host: str | None, port: int | None, config_path: Path | None, reload: bool, verbose: bool):
    """
    Run the redaction session API.

    Sessions are kept in memory, so the server is a single process; put it
    behind a reverse proxy rather than adding uvicorn workers.
    """
    import uvicorn

    _setup_logging(verbose)
    try:
        server = get_config(config_path).server
    except (ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    host = host or server.host
    port = port or server.port
    if host not in ("127.0.0.1", "localhost", "::1"):
        click.echo(f"Warning: serving documents on non-local interface {host}", err=True)
    click.echo(f"Redactpad API on http://{host}:{port} (docs at /docs)", err=True)

    uvicorn.run(
        "redactpad.api:app",
        host=host,
        port=port,
        reload=reload,
        workers=1,
        log_level="debug" if verbose else "info",
    )


if __name__ == "__main__":
    main()
