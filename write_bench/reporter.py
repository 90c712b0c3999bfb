from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from write_bench.orchestrator import RunReport


def _mb(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def build_summary_table(report: RunReport) -> Table:
    """
    Render the run's throughput figures as a rich table.

    Overall TPS (submitted records over total elapsed time) is the headline;
    the sample statistics are shown next to it because they differ whenever
    chunks or batches vary in size or duration.
    """
    metrics = report.metrics
    summary = metrics.summary()
    tps = summary["tps"]

    title = f"Write Throughput: {report.store} / {report.container}"
    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"TPS samples per {metrics.granularity.value} (n={summary['samples']})",
    )
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    buffer = f"{report.plan.buffer_size:,}" if report.plan.buffer_size else "-"
    table.add_row(
        "Records (written / total)",
        f"{metrics.records_written:,} / {metrics.total_records:,}",
    )
    table.add_row(
        "Batches (ok / failed)",
        f"{metrics.batches_succeeded:,} / {metrics.batches_failed:,}",
    )
    table.add_row("Batch size / buffer", f"{report.plan.batch_size:,} / {buffer}")
    table.add_row("Concurrency", str(report.concurrency))
    table.add_row("Elapsed (ms)", f"{metrics.total_elapsed_millis:,}")
    table.add_row("[bold green]Overall TPS[/bold green]", f"[bold green]{metrics.overall_tps:,.2f}[/bold green]")
    table.add_row("Average TPS", f"{tps['avg']:,.2f}")
    table.add_row("Min / Max TPS", f"{tps['min']:,.2f} / {tps['max']:,.2f}")
    table.add_row("Median ± StdDev TPS", f"{tps['median']:,.2f} ± {tps['stddev']:,.2f}")

    if report.profile is not None:
        table.add_row("Peak Memory (MB)", _mb(report.profile.peak_rss_bytes))
        cpu = report.profile.cpu_percent
        table.add_row("CPU %", f"{cpu:.1f}" if cpu is not None else "N/A")

    if report.verified is None:
        verification = "[dim]skipped[/dim]"
    elif report.verified:
        verification = f"[green]ok[/green] ({report.final_count:,} records)"
    else:
        verification = f"[yellow]{report.discrepancy.describe()}[/yellow]"
    table.add_row("Count check", verification)

    if report.stopped_early:
        table.add_row("Stopped early", "[red]yes[/red]")
    return table


def build_error_table(report: RunReport) -> Optional[Table]:
    errors = report.metrics.error_counts
    if not errors:
        return None
    table = Table(title="Errors", box=box.ROUNDED)
    table.add_column("Error code", style="red")
    table.add_column("Batches", justify="right")
    for code, count in sorted(errors.items(), key=lambda item: (-item[1], item[0])):
        table.add_row(code, f"{count:,}")
    return table


def print_report(report: RunReport, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(build_summary_table(report))
    errors = build_error_table(report)
    if errors is not None:
        console.print(errors)
