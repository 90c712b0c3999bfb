"""
Benchmark runner: provision, write, verify and tear down one run.

Usage (example from CLI):
    from write_bench.orchestrator import run_benchmark

    report = run_benchmark(settings, dry_run=True)
    print(report.metrics.overall_tps)

Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)

Teardown (delete the container this run created, close the client) runs on
every exit path. Configuration errors are raised before a store is created.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from write_bench.config import Settings, get_settings
from write_bench.dispatcher import Dispatcher, bounded_gather
from write_bench.domain.models import Batch, BatchOutcome, ChunkTiming, SubmitResult
from write_bench.errors import (
    BenchmarkError,
    ProvisioningError,
    VerificationDiscrepancy,
)
from write_bench.generator import RecordGenerator
from write_bench.infrastructure.abstract import DocumentStore
from write_bench.infrastructure.db_factory import create_store, probe_database
from write_bench.metrics import Granularity, RunMetrics, aggregate
from write_bench.planner import BatchPlan, materialize, plan
from write_bench.utils.logging import get_logger
from write_bench.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)

# Statuses after which further submissions cannot succeed.
FATAL_STATUS_CODES = ("401", "403", "404")

StoreFactory = Callable[[], DocumentStore]


@dataclass
class RunReport:
    container: str
    store: str
    plan: BatchPlan
    metrics: RunMetrics
    concurrency: int
    initial_count: Optional[int] = None
    final_count: Optional[int] = None
    discrepancy: Optional[VerificationDiscrepancy] = None
    cleaned_records: int = 0
    stopped_early: bool = False
    container_created: bool = False
    profile: Optional[ProfileStats] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def verified(self) -> Optional[bool]:
        if self.final_count is None:
            return None
        return self.discrepancy is None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "store": self.store,
            "container": self.container,
            "total_records": self.plan.total_records,
            "batch_size": self.plan.batch_size,
            "buffer_size": self.plan.buffer_size,
            "concurrency": self.concurrency,
            "chunks": len(self.plan.chunks),
            "metrics": self.metrics.summary(),
            "initial_count": self.initial_count,
            "final_count": self.final_count,
            "verified": self.verified,
            "discrepancy": self.discrepancy.describe() if self.discrepancy else None,
            "cleaned_records": self.cleaned_records,
            "stopped_early": self.stopped_early,
            "container_created": self.container_created,
            "profile": self.profile.as_dict() if self.profile else None,
        }


class BenchmarkRunner:
    """
    Orchestrates one full benchmark run against a `DocumentStore`.

    Parameters
    ----------
    settings : Settings
        Effective configuration, constructed once and passed in.
    store_factory : callable, optional
        Builds the store. Defaults to `create_store(settings, dry_run)`.
    dry_run : bool
        Skip the Cosmos credential check and use the in-memory store.
    """

    def __init__(
        self,
        settings: Settings,
        store_factory: Optional[StoreFactory] = None,
        dry_run: bool = False,
    ) -> None:
        self.settings = settings
        self.dry_run = dry_run
        self._store_factory = store_factory or (lambda: create_store(settings, dry_run=dry_run))

    def build_plan(self) -> BatchPlan:
        """Validate settings and plan the batches. No store calls are made."""
        self.settings.validate_for_run(dry_run=self.dry_run)
        return plan(
            total_records=self.settings.record_quantity,
            batch_size=self.settings.batch_size,
            buffer_size=self.settings.buffer_size,
            max_batch_size=self.settings.max_batch_size,
        )

    def run(self) -> RunReport:
        return asyncio.run(self.run_async())

    async def run_async(self) -> RunReport:
        settings = self.settings
        batch_plan = self.build_plan()

        store = self._store_factory()
        provisioned = False
        log.info(
            f"[RUN START] {settings.record_quantity} records into '{settings.container_name}'",
            extra={
                "store": store.name,
                "records": settings.record_quantity,
                "batch_size": settings.batch_size,
                "buffer_size": settings.buffer_size,
                "concurrency": settings.concurrency,
                "chunks": len(batch_plan.chunks),
            },
        )
        try:
            provisioned = await self._provision(store)

            cleaned = await self._pre_clean(store) if settings.pre_clean else 0
            initial_count = await store.count_records() if settings.verify_count else None

            metrics, stats, stopped = await self._execute(store, batch_plan)

            report = RunReport(
                container=settings.container_name,
                store=store.name,
                plan=batch_plan,
                metrics=metrics,
                concurrency=settings.concurrency,
                initial_count=initial_count,
                cleaned_records=cleaned,
                stopped_early=stopped,
                container_created=provisioned,
                profile=stats,
            )
            if initial_count is not None:
                await self._verify(store, report)
            log.info(
                "[RUN COMPLETE]",
                extra={
                    "overall_tps": round(metrics.overall_tps, 2),
                    "avg_tps": round(metrics.avg_tps, 2),
                    "records_written": metrics.records_written,
                    "errors": metrics.error_counts,
                },
            )
            return report
        finally:
            await self._teardown(store, provisioned)

    async def _provision(self, store: DocumentStore) -> bool:
        """Check the database and create the container. Returns True if this run created it."""
        settings = self.settings
        if settings.check_database:
            try:
                exists = await probe_database(store)
            except BenchmarkError:
                raise
            except Exception as exc:
                raise ProvisioningError(f"could not reach database: {exc}") from exc
            if not exists:
                raise ProvisioningError(f"database '{settings.database_name}' does not exist")

        if settings.create_container:
            log.info(
                f"[PROVISION] Creating container '{settings.container_name}'",
                extra={
                    "partition_key_path": settings.partition_key_path,
                    "throughput": settings.throughput,
                },
            )
            try:
                created = await store.create_collection(
                    settings.container_name, settings.partition_key_path, settings.throughput
                )
            except BenchmarkError:
                raise
            except Exception as exc:
                raise ProvisioningError(
                    f"could not create container '{settings.container_name}': {exc}"
                ) from exc
            if not created:
                log.warning(
                    f"[PROVISION] Container '{settings.container_name}' already exists; "
                    "it will not be deleted at teardown"
                )
            return created
        return False

    async def _pre_clean(self, store: DocumentStore) -> int:
        keys = await store.list_record_keys()
        log.info(f"[PRE-CLEAN] Deleting {len(keys)} existing records", extra={"records": len(keys)})
        failures: List[Tuple[str, str]] = []

        async def _delete(key: Tuple[str, str]) -> None:
            await store.delete_record(*key)

        def _record_failure(key: Tuple[str, str], exc: Exception) -> None:
            failures.append(key)
            log.warning(f"[PRE-CLEAN] Failed to delete {key[0]}: {exc}")

        await bounded_gather(keys, self.settings.concurrency, _delete, on_error=_record_failure)
        if failures:
            log.warning(
                f"[PRE-CLEAN] {len(failures)} records could not be deleted",
                extra={"failed": len(failures)},
            )
        return len(keys) - len(failures)

    async def _execute(
        self, store: DocumentStore, batch_plan: BatchPlan
    ) -> Tuple[RunMetrics, ProfileStats, bool]:
        settings = self.settings
        generator = RecordGenerator(
            mode=settings.partition_mode,
            shared_key=settings.partition_key,
            seed=settings.random_seed,
        )

        async def submit(batch: Batch) -> SubmitResult:
            return await store.submit_batch(batch.partition_key, batch.records)

        dispatcher = Dispatcher(settings.concurrency, submit, fatal_codes=FATAL_STATUS_CODES)
        outcomes: List[BatchOutcome] = []
        timings: List[ChunkTiming] = []
        next_index = 0
        total_chunks = len(batch_plan.chunks)

        with profile_block("dispatch") as stats:
            for chunk in batch_plan.chunks:
                batches = materialize(chunk, generator, first_index=next_index)
                next_index += len(batches)

                start = time.perf_counter()
                chunk_outcomes = await dispatcher.dispatch(batches)
                elapsed = time.perf_counter() - start

                timing = ChunkTiming(index=chunk.index, records=chunk.records, elapsed_seconds=elapsed)
                timings.append(timing)
                outcomes.extend(chunk_outcomes)
                failed = sum(1 for outcome in chunk_outcomes if not outcome.success)
                log.info(
                    f"[CHUNK {chunk.index + 1}/{total_chunks}] {chunk.records} records "
                    f"in {elapsed * 1000:.0f} ms",
                    extra={
                        "chunk": chunk.index,
                        "batches": len(batches),
                        "failed_batches": failed,
                        "tps": round(chunk.records / elapsed, 2) if elapsed > 0 else 0.0,
                    },
                )

        metrics = aggregate(
            outcomes,
            total_elapsed_seconds=sum(timing.elapsed_seconds for timing in timings),
            chunk_timings=timings,
            granularity=Granularity.CHUNK if batch_plan.buffer_size else Granularity.BATCH,
        )
        return metrics, stats, dispatcher.stop_requested

    async def _verify(self, store: DocumentStore, report: RunReport) -> None:
        final_count = await store.count_records()
        report.final_count = final_count
        expected_written = report.metrics.records_written
        if final_count != (report.initial_count or 0) + expected_written:
            report.discrepancy = VerificationDiscrepancy(
                initial_count=report.initial_count or 0,
                expected_written=expected_written,
                final_count=final_count,
            )
            log.warning(
                f"[VERIFY] Count mismatch: {report.discrepancy.describe()}",
                extra={"difference": report.discrepancy.difference},
            )
        else:
            log.info(f"[VERIFY] Container holds {final_count} records", extra={"count": final_count})

    async def _teardown(self, store: DocumentStore, provisioned: bool) -> None:
        settings = self.settings
        try:
            if provisioned and settings.teardown:
                log.info(f"[TEARDOWN] Deleting container '{settings.container_name}'")
                try:
                    await store.delete_collection(settings.container_name)
                except Exception as exc:  # noqa: BLE001 - must not mask the run's own error
                    log.warning(
                        f"[TEARDOWN] Could not delete container '{settings.container_name}': {exc}"
                    )
            elif provisioned:
                log.info(f"[TEARDOWN] Keeping container '{settings.container_name}'")
            elif settings.create_container:
                log.info("[TEARDOWN] Container was not created by this run; skipping delete")
        finally:
            try:
                await store.close()
            except Exception as exc:  # noqa: BLE001 - must not mask the run's own error
                log.warning(f"[TEARDOWN] Could not close store client: {exc}")


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    with latest_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    with archive_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def run_benchmark(
    settings: Optional[Settings] = None,
    dry_run: bool = False,
    persist: bool = True,
    store_factory: Optional[StoreFactory] = None,
) -> RunReport:
    """
    Run one benchmark and optionally persist the report.

    Parameters
    ----------
    settings : Settings | None
        Effective configuration. Defaults to the cached environment settings.
    dry_run : bool
        Write to the in-memory store instead of Cosmos DB.
    persist : bool
        Whether to write the JSON report under `settings.results_dir`.
    store_factory : callable | None
        Override store construction (tests, custom backends).
    """
    settings = settings or get_settings()
    runner = BenchmarkRunner(settings, store_factory=store_factory, dry_run=dry_run)
    report = runner.run()
    if persist:
        _persist_results(report.to_dict(), Path(settings.results_dir))
    return report


__all__ = ["FATAL_STATUS_CODES", "BenchmarkRunner", "RunReport", "run_benchmark"]
