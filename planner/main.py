from __future__ import annotations

from datetime import date
from pathlib import Path
import logging
from typing import Optional

import typer
from sqlalchemy.exc import SQLAlchemyError

from . import config
from .models import BuildStatus, reset_engine
from .pipeline.run import BuildRequest, recent_builds, run_build
from .themes import THEMES, get_theme

app = typer.Typer(help="Printable planner generator")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _use_out_dir(out: Optional[Path]) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.command()
def build(
    year: int = typer.Option(date.today().year, "--year", help="Planner year"),
    theme: str = typer.Option(config.DEFAULT_THEME, "--theme", help="light | earth | dark"),
    title: Optional[str] = typer.Option(None, "--title", help="Document title"),
    recipe: str = typer.Option(config.DEFAULT_RECIPE, "--recipe", help="Planner definition name"),
    weeks: Optional[int] = typer.Option(None, "--weeks", help="Override the number of weekly pages"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    previews: bool = typer.Option(True, "--previews/--no-previews", help="Render PNG previews"),
    debug: bool = typer.Option(False, "--debug", help="Outline layout regions"),
) -> None:
    try:
        get_theme(theme)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--theme") from exc

    _use_out_dir(out)
    result = run_build(
        BuildRequest(
            year=year,
            theme=theme,
            title=title,
            recipe=recipe,
            total_weeks=weeks,
            previews=previews,
            debug=debug,
        )
    )
    if result.status == BuildStatus.READY:
        typer.echo(f"READY: {result.slug} ({result.page_count} pages) -> {config.OUT_DIR / result.slug}")
        return
    typer.echo(f"FAILED: {result.slug} [{result.fail_code}] {result.fail_detail}")
    raise typer.Exit(code=1)


@app.command()
def history(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    limit: int = typer.Option(20, "--limit", help="Number of builds to show"),
) -> None:
    _use_out_dir(out)
    try:
        builds = recent_builds(limit)
    except SQLAlchemyError as exc:
        typer.echo(f"Cannot read build history: {exc}")
        raise typer.Exit(code=1)
    if not builds:
        typer.echo("No builds yet")
        return
    for item in builds:
        line = f"{item.created_at:%Y-%m-%d %H:%M} {item.status.value:<7} {item.slug}"
        if item.status == BuildStatus.FAILED:
            line += f" [{item.fail_code}]"
        typer.echo(line)


@app.command()
def themes() -> None:
    for name, theme in sorted(THEMES.items()):
        typer.echo(f"{name:<8} {theme.display_name} (background {theme.background})")


if __name__ == "__main__":
    app()
