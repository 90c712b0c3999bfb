from __future__ import annotations

import json
import sys
from typing import Optional

import typer

from write_bench.config import PartitionMode, load_settings
from write_bench.errors import ConfigurationError, ProvisioningError
from write_bench.orchestrator import run_benchmark
from write_bench.reporter import print_report
from write_bench.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Cosmos DB write throughput benchmark CLI.")
log = get_logger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG = 2


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)
    typer.echo(
        f"COSMOS={settings.cosmos_url or '<unset>'} key={settings.masked_key()} | "
        f"db={settings.database_name or '<unset>'} container={settings.container_name} "
        f"pk={settings.partition_key_path} throughput={settings.throughput} | "
        f"records={settings.record_quantity} batch={settings.batch_size} "
        f"buffer={settings.buffer_size or '-'} concurrency={settings.concurrency} "
        f"partition_mode={settings.partition_mode.value}"
    )


@app.command()
def run(
    records: Optional[int] = typer.Option(
        None, "--records", "-r", help="Number of records to write (default from settings)."
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", help="Records per transactional batch."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", help="Maximum batches in flight."
    ),
    buffer_size: Optional[int] = typer.Option(
        None, "--buffer-size", help="Records per progress chunk (enables per-chunk TPS)."
    ),
    throughput: Optional[int] = typer.Option(
        None, "--throughput", help="Provisioned RU/s for the created container."
    ),
    partition_mode: Optional[PartitionMode] = typer.Option(
        None, "--partition-mode", help="shared, per_batch or per_record."
    ),
    pre_clean: Optional[bool] = typer.Option(
        None, "--pre-clean/--no-pre-clean", help="Delete existing records before the run."
    ),
    verify: Optional[bool] = typer.Option(
        None, "--verify/--no-verify", help="Compare record counts before and after."
    ),
    teardown: Optional[bool] = typer.Option(
        None, "--teardown/--no-teardown", help="Delete the container after the run."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for record data."),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Write to an in-memory store instead of Cosmos DB."
    ),
    json_logs: Optional[bool] = typer.Option(None, "--json-logs", help="Emit JSON logs."),
    persist: bool = typer.Option(
        True, "--persist/--no-persist", help="Write the JSON report to the results directory."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """
    Provision a container, write synthetic records in batches and report TPS.
    """
    try:
        settings = load_settings(
            record_quantity=records,
            batch_size=batch_size,
            concurrency=concurrency,
            buffer_size=buffer_size,
            throughput=throughput,
            partition_mode=partition_mode,
            pre_clean=pre_clean,
            verify_count=verify,
            teardown=teardown,
            random_seed=seed,
            log_json=json_logs,
        )
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        report = run_benchmark(settings, dry_run=dry_run, persist=persist)
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)
    except ProvisioningError as exc:
        log.error(f"Provisioning failed: {exc}")
        raise typer.Exit(code=EXIT_FAILURE)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
