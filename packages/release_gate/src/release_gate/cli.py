"""Typer CLI for telemetry-gate.

Commands:
  trends           Build a trend snapshot from the pipeline event log
  regression       Gate a trend snapshot against regression thresholds
  thresholds       Gate the latest window against absolute floors
  frontend-perf    Gate frontend interaction latency
  baseline         Append a snapshot to the history and re-derive the baseline
  show-thresholds  Show the resolved thresholds next to the stored baseline
"""

from __future__ import annotations

import logging
import os
from pathlib import Path  # noqa: TC003 - Typer evaluates type hints at runtime
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from release_gate.absolute import evaluate_absolute
from release_gate.frontend import evaluate_frontend_perf
from release_gate.profiles import PROFILES
from release_gate.regression import evaluate_regression
from release_gate.settings import GateSettings
from release_gate.thresholds import (
    resolve_absolute_thresholds,
    resolve_frontend_thresholds,
    resolve_thresholds,
)
from telemetry_core.errors import TelemetryInputError
from telemetry_core.types import GateDecision
from trend_analysis.events import read_events
from trend_analysis.snapshot import build_trend_snapshot, load_trend_snapshot, write_trend_snapshot
from trend_analysis.storage import BaselineStore
from trend_analysis.summary import summarize_window

if TYPE_CHECKING:
    from release_gate.models import GateResult
    from telemetry_core.models import WindowSummary
    from trend_analysis.models import Baseline

logger = logging.getLogger("release_gate.cli")

app = typer.Typer(
    name="telemetry-gate",
    help="Telemetry trend snapshots and regression gates for CI",
    no_args_is_help=True,
)
console = Console()

TOOLING_ERROR_EXIT = 2

DECISION_STYLES = {
    GateDecision.PASS: "green",
    GateDecision.WARN: "yellow",
    GateDecision.FAIL: "red",
    GateDecision.SKIPPED_NO_BASELINE: "dim",
}


@app.callback()
def main(
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Logging level (default: TELEMETRY_LOG_LEVEL)")
    ] = None,
) -> None:
    """Telemetry trend snapshots and regression gates for CI."""
    level = (log_level or GateSettings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _settings(**values: object) -> GateSettings:
    """Environment settings with explicit CLI options layered on top."""
    explicit = {key: value for key, value in values.items() if value is not None}
    return GateSettings(**explicit)


def _tooling_error(exc: TelemetryInputError) -> typer.Exit:
    logger.error("%s", exc)
    console.print(f"[red]Error: {escape(str(exc))}[/red]")
    return typer.Exit(TOOLING_ERROR_EXIT)


def _print_summary_table(title: str, summary: WindowSummary) -> None:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("events", str(summary.window_events))
    table.add_row("attempts", str(summary.attempts))
    table.add_row("success rate", f"{summary.overall_success_rate:.4f}")
    table.add_row("p95", f"{summary.overall_p95_ms:.1f}ms")
    for provider, fail_rate in sorted(summary.provider_fail_rate.items()):
        table.add_row(f"provider {provider} fail rate", f"{fail_rate:.4f}")
    console.print(table)


def _print_result(label: str, result: GateResult) -> None:
    style = DECISION_STYLES[result.decision]
    console.print(f"[bold]{label}:[/bold] [{style}]{result.decision.upper()}[/{style}]")
    console.print(f"Mode: {result.mode}")
    for failure in result.failures:
        marker = "[yellow]![/yellow]" if result.decision == GateDecision.WARN else "[red]✗[/red]"
        console.print(f"  {marker} {failure}")


def _suggested_rows(baseline: Baseline) -> dict[str, object]:
    s = baseline.suggested_thresholds
    return {
        "success drop": f"{s.success_drop:.4f}",
        "p95 increase": f"{s.p95_increase_ms:.1f}ms",
        "provider fail-rate increase": f"{s.provider_failrate_increase:.4f}",
        **{f"provider {name}": f"{value:.4f}" for name, value in s.provider_overrides.items()},
    }


def _print_thresholds(title: str, values: dict[str, object]) -> None:
    table = Table(title=title)
    table.add_column("Threshold", style="cyan")
    table.add_column("Value", style="green")
    for key, value in values.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def trends(
    file: Annotated[
        Path | None, typer.Option("--file", help="Pipeline events JSONL (default: settings)")
    ] = None,
    out: Annotated[
        Path | None, typer.Option("--out", help="Trend snapshot output path (default: settings)")
    ] = None,
    window: Annotated[
        int | None, typer.Option("--window", "-w", help="Events per window (default: 300)")
    ] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Build a trend snapshot from the last two windows of the event log."""
    settings = _settings(events_file=file, trends_file=out, window_size=window)

    try:
        events = read_events(settings.events_file)
        snapshot = build_trend_snapshot(
            events, settings.window_size, source_file=str(settings.events_file)
        )
        write_trend_snapshot(snapshot, settings.trends_file)
    except TelemetryInputError as e:
        raise _tooling_error(e) from None

    if format == "json":
        console.print_json(snapshot.model_dump_json())
        return

    console.print(f"[green]Trend snapshot written to {settings.trends_file}[/green]")
    _print_summary_table(f"Current window ({settings.window_size} events)", snapshot.current)
    if snapshot.has_baseline:
        _print_summary_table("Previous window", snapshot.previous)
        console.print(
            f"Delta: success rate {snapshot.delta.success_rate:+.4f}, "
            f"p95 {snapshot.delta.p95_ms:+.1f}ms"
        )
    else:
        console.print("[dim]No previous window yet.[/dim]")


@app.command()
def regression(
    file: Annotated[
        Path | None, typer.Option("--file", help="Trend snapshot JSON (default: settings)")
    ] = None,
    profile: Annotated[
        str | None, typer.Option("--profile", "-p", help="Gate profile: ci, nightly, release")
    ] = None,
    mode: Annotated[str | None, typer.Option("--mode", help="Gate mode: warn or block")] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Compare the current trend window against the previous one."""
    settings = _settings(trends_file=file, profile=profile, mode=mode)

    try:
        snapshot = load_trend_snapshot(settings.trends_file)
    except TelemetryInputError as e:
        raise _tooling_error(e) from None

    thresholds = resolve_thresholds(settings.profile, os.environ)
    result = evaluate_regression(snapshot, thresholds, settings.mode)

    if format == "json":
        console.print_json(result.model_dump_json())
    else:
        _print_result("Regression gate", result)
        console.print(f"Profile: {thresholds.profile}")
        console.print(
            f"Windows: current={result.current_events} previous={result.previous_events}"
        )
        c = result.counters
        console.print(
            f"Pipelines: evaluated={c.evaluated_pipelines}/{c.candidate_pipelines} "
            f"no-baseline={c.skipped_no_baseline} low-samples={c.skipped_low_samples}"
        )
    raise typer.Exit(result.exit_code)


@app.command()
def thresholds(
    file: Annotated[
        Path | None, typer.Option("--file", help="Pipeline events JSONL (default: settings)")
    ] = None,
    profile: Annotated[
        str | None, typer.Option("--profile", "-p", help="Gate profile: ci, nightly, release")
    ] = None,
    mode: Annotated[str | None, typer.Option("--mode", help="Gate mode: warn or block")] = None,
    window: Annotated[
        int | None,
        typer.Option("--window", "-w", help="Only judge the last N events (default: all)"),
    ] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Check the event log against absolute success and latency floors."""
    settings = _settings(events_file=file, profile=profile, mode=mode)

    try:
        events = read_events(settings.events_file)
    except TelemetryInputError as e:
        raise _tooling_error(e) from None

    if window is not None and window > 0:
        events = events[-window:]

    summary = summarize_window(events)
    limits = resolve_absolute_thresholds(settings.profile, os.environ)
    result = evaluate_absolute(summary, limits, settings.mode)

    if format == "json":
        console.print_json(result.model_dump_json())
    else:
        _print_result("Absolute threshold gate", result)
        _print_summary_table("Window", summary)
    raise typer.Exit(result.exit_code)


@app.command("frontend-perf")
def frontend_perf(
    file: Annotated[
        Path | None, typer.Option("--file", help="Pipeline events JSONL (default: settings)")
    ] = None,
    profile: Annotated[
        str | None, typer.Option("--profile", "-p", help="Gate profile: ci, nightly, release")
    ] = None,
    mode: Annotated[str | None, typer.Option("--mode", help="Gate mode: warn or block")] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Check frontend tab-switch and page-render p95 latency."""
    settings = _settings(events_file=file, profile=profile, mode=mode)

    try:
        events = read_events(settings.events_file)
    except TelemetryInputError as e:
        raise _tooling_error(e) from None

    limits = resolve_frontend_thresholds(settings.profile, os.environ)
    result = evaluate_frontend_perf(events, limits, settings.mode)

    if format == "json":
        console.print_json(result.model_dump_json())
    else:
        _print_result("Frontend perf gate", result)
        for sample in (result.tab_switch, result.page_render):
            console.print(f"  {sample.pipeline}: samples={sample.samples} p95={sample.p95_ms:.1f}ms")
        for note in result.notes:
            console.print(f"  [dim]note: {note}[/dim]")
    raise typer.Exit(result.exit_code)


@app.command()
def baseline(
    trends_file: Annotated[
        Path | None, typer.Option("--trends", help="Trend snapshot JSON (default: settings)")
    ] = None,
    history: Annotated[
        Path | None, typer.Option("--history", help="History JSONL (default: settings)")
    ] = None,
    out: Annotated[
        Path | None, typer.Option("--out", help="Baseline JSON output path (default: settings)")
    ] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text, json or env")
    ] = "text",
) -> None:
    """Append the latest snapshot to the history and derive suggested thresholds."""
    settings = _settings(trends_file=trends_file, history_file=history, baseline_file=out)
    store = BaselineStore(history_file=settings.history_file, baseline_file=settings.baseline_file)

    try:
        snapshot = load_trend_snapshot(settings.trends_file)
        result = store.update(snapshot)
    except TelemetryInputError as e:
        raise _tooling_error(e) from None

    if format == "json":
        console.print_json(result.model_dump_json())
        return
    if format == "env":
        for key, value in result.as_env_overrides().items():
            console.print(f"{key}={value}", markup=False, highlight=False)
        return

    console.print(f"[green]Baseline written to {settings.baseline_file}[/green]")
    console.print(
        f"History: {result.sample_count} sample(s), {result.transition_count} transition(s)"
    )
    if not result.ready_for_tuning:
        console.print("[yellow]Not enough history for tuning yet; suggestions are advisory.[/yellow]")
    _print_thresholds("Suggested thresholds", _suggested_rows(result))


@app.command("show-thresholds")
def show_thresholds(
    profile: Annotated[
        str | None, typer.Option("--profile", "-p", help="Gate profile: ci, nightly, release")
    ] = None,
    baseline_file: Annotated[
        Path | None,
        typer.Option("--baseline", help="Baseline JSON to compare against (default: settings)"),
    ] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Show the thresholds each gate would use, overrides applied."""
    settings = _settings(profile=profile, baseline_file=baseline_file)
    regression_limits = resolve_thresholds(settings.profile, os.environ)
    absolute_limits = resolve_absolute_thresholds(settings.profile, os.environ)
    frontend_limits = resolve_frontend_thresholds(settings.profile, os.environ)

    store = BaselineStore(history_file=settings.history_file, baseline_file=settings.baseline_file)
    try:
        stored = store.load_baseline()
    except TelemetryInputError as e:
        raise _tooling_error(e) from None

    if format == "json":
        payload = {
            "regression": regression_limits.model_dump(mode="json"),
            "absolute": absolute_limits.model_dump(mode="json"),
            "frontend_perf": frontend_limits.model_dump(mode="json"),
            "suggested": (
                stored.suggested_thresholds.model_dump(mode="json") if stored else None
            ),
        }
        console.print_json(data=payload)
        return

    console.print(f"[bold]{settings.profile}[/bold]: {PROFILES[settings.profile].description}")
    _print_thresholds("Regression", regression_limits.model_dump(exclude={"profile"}))
    _print_thresholds("Absolute", absolute_limits.model_dump())
    _print_thresholds("Frontend perf", frontend_limits.model_dump())
    if stored is None:
        console.print(f"[dim]No baseline at {escape(str(settings.baseline_file))}.[/dim]")
        return
    _print_thresholds(
        f"Suggested by baseline ({stored.sample_count} sample(s))", _suggested_rows(stored)
    )
