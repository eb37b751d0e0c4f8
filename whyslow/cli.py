"""Typer CLI: ``whyslow`` reports which dependencies slow down ``npm install``."""

from __future__ import annotations

import asyncio
import logging
from importlib import metadata as importlib_metadata
from pathlib import Path

import typer
from result import Err
from rich.console import Console

from whyslow import __version__
from whyslow.config.loader import load_config, sample_config_json
from whyslow.config.schema import AppConfig, clamp_field
from whyslow.services.badge import badge_snippets, ci_report
from whyslow.services.knowledge import build_knowledge_base
from whyslow.services.pipeline import build_result, collect_evidence, refine_with_measurements
from whyslow.services.summary import render_badge, render_json, render_results

app = typer.Typer(
    name="whyslow",
    help="Analyze which npm packages are slowing down your install times.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_config(config_path: Path | None) -> AppConfig:
    loaded = load_config(config_path)
    if isinstance(loaded, Err):
        err_console.print(f"[yellow]Warning:[/] {loaded.unwrap_err()} Using defaults.")
        return AppConfig()
    return loaded.unwrap()


def _fail(message: str) -> typer.Exit:
    err_console.print(f"\n[red]❌ Error:[/] {message}\n")
    return typer.Exit(code=1)


def _distribution_version() -> str:
    try:
        return importlib_metadata.version("whyslow")
    except importlib_metadata.PackageNotFoundError:
        return __version__


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"whyslow {_distribution_version()}")
        raise typer.Exit()


def _print_config_callback(value: bool) -> None:
    if value:
        typer.echo(sample_config_json())
        raise typer.Exit()


@app.command()
def analyze(
    path: Path = typer.Option(Path("."), "--path", "-p", help="Project directory to analyze."),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON."),
    threshold: int | None = typer.Option(
        None, "--threshold", help="Only show packages above this time threshold (in seconds)."
    ),
    deep: bool = typer.Option(False, "--deep", help="Deep scan node_modules and the lockfile for transitive dependencies."),
    measure: bool = typer.Option(False, "--measure", help="Actually measure install times (slow but accurate)."),
    badge: bool = typer.Option(False, "--badge", help="Generate a README badge for install time."),
    ci: bool = typer.Option(False, "--ci", help="CI-friendly output (markdown report)."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to a whyslow config.json."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    print_config: bool = typer.Option(
        False,
        "--print-config",
        callback=_print_config_callback,
        is_eager=True,
        help="Print the default config.json and exit.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Estimate which declared dependencies slow down installation."""
    _setup_logging(verbose)
    cfg = _load_config(config)
    if threshold is not None:
        cfg.threshold = clamp_field(threshold, "threshold")

    project_dir = path.expanduser().resolve()
    if not project_dir.is_dir():
        raise _fail(f"Project directory not found: {project_dir}")

    kb = build_knowledge_base(cfg)
    if deep:
        with err_console.status("Scanning node_modules...") as scan_status:

            def _scan_progress(name: str, done: int, total: int) -> None:
                scan_status.update(f"Scanning node_modules ({done}/{total}): {name}")

            collected = collect_evidence(project_dir, cfg, kb, deep=True, on_scan_progress=_scan_progress)
    else:
        collected = collect_evidence(project_dir, cfg, kb)
    if isinstance(collected, Err):
        raise _fail(collected.unwrap_err().message)

    evidence = collected.unwrap()
    result = build_result(evidence, cfg)

    if measure and result.slow_packages:
        with err_console.status("Measuring install times (this may take a while)...") as status:

            def _progress(name: str, index: int, total: int) -> None:
                status.update(f"Measuring {name} ({index + 1}/{total})...")

            result = asyncio.run(refine_with_measurements(evidence, result, cfg, on_progress=_progress))

    if json_output:
        typer.echo(render_json(result))
    elif badge:
        render_badge(console, badge_snippets(result))
    elif ci:
        typer.echo(ci_report(result))
    else:
        render_results(console, result, show_extended_stats=evidence.deep)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
