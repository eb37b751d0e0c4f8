from __future__ import annotations

import json

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from whyslow.models.analysis import AnalysisResult, LockfileStats, NodeModulesStats, Seconds, Suggestion
from whyslow.services.badge import BadgeSnippets
from whyslow.services.formatting import format_bytes, format_time

# Rough baseline for the rest of an install, used for the "% faster" hint.
BASELINE_INSTALL_SECONDS = 60


def _time_icon(seconds: Seconds) -> str:
    if seconds >= 30:
        return "🔥"
    if seconds >= 15:
        return "⚡"
    return "💡"


def savings_percentage(savings: Seconds) -> int:
    if savings <= 0:
        return 0
    return round(savings / (savings + BASELINE_INSTALL_SECONDS) * 100)


def _stats_panel(
    lockfile_stats: LockfileStats | None,
    node_modules_stats: NodeModulesStats | None,
    largest: int,
) -> Panel | None:
    lines: list[str] = []
    if lockfile_stats is not None:
        lines.append(f"Lockfile: [bold]{lockfile_stats.lockfile_type.value}[/bold] ({lockfile_stats.total_deps} dependencies)")
        if lockfile_stats.install_script_count > 0:
            lines.append(f"Packages with install scripts: [bold]{lockfile_stats.install_script_count}[/bold]")
    if node_modules_stats is not None and node_modules_stats.total_size > 0:
        lines.append(f"node_modules size: [bold]{format_bytes(node_modules_stats.total_size)}[/bold]")
        if node_modules_stats.largest_packages:
            lines.append("")
            lines.append("Largest packages by disk size:")
            for item in node_modules_stats.largest_packages[:largest]:
                lines.append(f"  {escape(item.name)}: {format_bytes(item.size)}")
    if not lines:
        return None
    return Panel("\n".join(lines), title="Deep Scan", border_style="blue")


def _slow_packages_table(result: AnalysisResult) -> Table:
    table = Table(title="Slowest packages", header_style="bold yellow")
    table.add_column("#", justify="right")
    table.add_column("Package")
    table.add_column("Est. Time", justify="right")
    table.add_column("Reason")
    for idx, pkg in enumerate(result.slow_packages, start=1):
        table.add_row(
            str(idx),
            f"{_time_icon(pkg.estimated_time)} [yellow]{escape(pkg.name)}[/yellow]",
            f"~{format_time(pkg.estimated_time)}",
            f"[dim]{pkg.reason.label}[/dim]",
        )
    return table


def _render_suggestions(console: Console, suggestions: list[Suggestion], total: Seconds) -> None:
    console.print("[bold green]💡 Suggestions:[/bold green]\n")
    for item in suggestions:
        console.print(f"   {item.priority.icon} {escape(item.suggestion)}")
        console.print(f"      [dim]Savings: ~[green]{format_time(item.potential_savings)}[/green][/dim]\n")
    if total > 0:
        console.print(
            f"[bold]Potential savings: ~[green]{format_time(total)}[/green] "
            f"({savings_percentage(total)}% faster install!)[/bold]\n"
        )


def render_results(
    console: Console,
    result: AnalysisResult,
    show_extended_stats: bool = False,
    largest: int = 5,
) -> None:
    console.print("\n[bold blue]📊 Install Time Analysis[/bold blue]\n")
    console.print(f"[dim]Analyzing {result.total_packages} packages...[/dim]\n")

    if show_extended_stats:
        panel = _stats_panel(result.lockfile_stats, result.node_modules_stats, largest)
        if panel is not None:
            console.print(panel)

    if not result.slow_packages:
        console.print("[green]✅ Great news! No obviously slow packages detected.[/green]\n")
        console.print("[dim]Your dependencies look well-optimized for install speed.[/dim]\n")
        return

    console.print(_slow_packages_table(result))
    console.print(
        f"\n[bold]Estimated slow time: [yellow]{format_time(result.estimated_total_time)}[/yellow][/bold]\n"
    )
    if result.suggestions:
        _render_suggestions(console, result.suggestions, result.potential_savings)


def render_json(result: AnalysisResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)


def render_badge(console: Console, badge: BadgeSnippets) -> None:
    console.print("\n[bold blue]📛 README Badge[/bold blue]\n")
    console.print(f"[dim]{escape(badge.summary)}[/dim]\n")
    console.print("[bold]Markdown:[/bold]")
    console.print(escape(badge.markdown), style="green", soft_wrap=True)
    console.print("\n[bold]HTML:[/bold]")
    console.print(escape(badge.html), style="green", soft_wrap=True)
    console.print("\n[bold]URL:[/bold]")
    console.print(badge.url, style="cyan", soft_wrap=True)
    console.print("\n[dim]Add this badge to your README to show install time![/dim]\n")
