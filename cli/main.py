"""gover CLI — scrape Go release notes into a JSON document.

Usage:
    python cli/main.py --help
    python cli/main.py --output go_version_data.json

The run resolves the latest Go release, scrapes the release history for
dates, scrapes every ``go1.N`` release-notes page, and writes the result
newest first.  Any failure of the two prerequisite fetches aborts without
writing; missing individual versions do not.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from gover.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from gover.config import settings
from gover.errors import GoverError
from gover.output import write_output
from gover.pipeline import scrape

app = typer.Typer(
    name="gover",
    help="Scrape go.dev release notes for every Go 1.x release.",
    add_completion=False,
)


@app.command()
def main(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output JSON file path (default: go_version_data.json, or OUTPUT_PATH).",
    ),
) -> None:
    """Scrape all Go 1.x release notes and write them as JSON."""
    target = output or settings.output_path

    try:
        result = scrape()
    except GoverError as exc:
        typer.echo(f"[gover] Error: {exc}")
        raise typer.Exit(code=1)

    typer.echo(
        f"[gover] Processed {len(result.versions)} of {len(result.requested)} versions."
    )

    try:
        written = write_output(result.versions, target)
    except GoverError as exc:
        typer.echo(f"[gover] Error: {exc}")
        raise typer.Exit(code=1)

    typer.echo(f"[gover] Successfully wrote scraped data to {written}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
