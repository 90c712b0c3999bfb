"""
Throughput aggregation for a benchmark run.

Two throughput figures are reported and they are intentionally different:

- `overall_tps`: submitted records / total wall-clock seconds around the dispatch
  phase. This is the headline number. Batches never admitted after an early
  stop are left out of the numerator but stay in the outcome count and the
  error tally.
- `avg_tps`: mean of the per-sample TPS values (per chunk when buffering, per
  batch otherwise). It diverges from `overall_tps` when samples differ in size
  or duration, so it is kept as a secondary diagnostic.

Total elapsed time is never derived by summing per-batch times, because batches
run concurrently.
"""

from __future__ import annotations

import statistics
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence

from write_bench.dispatcher import NOT_SUBMITTED_CODE
from write_bench.domain.models import BatchOutcome, ChunkTiming


class Granularity(str, Enum):
    BATCH = "batch"
    CHUNK = "chunk"


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _rate(records: int, seconds: float) -> float:
    return records / seconds if seconds > 0 else 0.0


@dataclass
class RunMetrics:
    outcomes: List[BatchOutcome] = field(default_factory=list)
    chunk_timings: List[ChunkTiming] = field(default_factory=list)
    total_elapsed_seconds: float = 0.0
    granularity: Granularity = Granularity.BATCH

    @property
    def total_records(self) -> int:
        return sum(outcome.batch_size for outcome in self.outcomes)

    @property
    def submitted_records(self) -> int:
        return sum(
            outcome.batch_size
            for outcome in self.outcomes
            if outcome.error_code != NOT_SUBMITTED_CODE
        )

    @property
    def records_written(self) -> int:
        return sum(outcome.batch_size for outcome in self.outcomes if outcome.success)

    @property
    def failed_records(self) -> int:
        return self.total_records - self.records_written

    @property
    def batches_succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def batches_failed(self) -> int:
        return len(self.outcomes) - self.batches_succeeded

    @property
    def total_elapsed_millis(self) -> int:
        return int(self.total_elapsed_seconds * 1000)

    @property
    def error_counts(self) -> Dict[str, int]:
        return dict(
            Counter(
                outcome.error_code or "unknown"
                for outcome in self.outcomes
                if not outcome.success
            )
        )

    @property
    def tps_samples(self) -> List[float]:
        if self.granularity is Granularity.CHUNK:
            return [
                _rate(timing.records, timing.elapsed_seconds)
                for timing in sorted(self.chunk_timings, key=lambda t: t.index)
            ]
        return [
            _rate(outcome.batch_size, outcome.elapsed_millis / 1000.0)
            for outcome in sorted(self.outcomes, key=lambda o: o.index)
            if outcome.success and outcome.elapsed_millis > 0
        ]

    @property
    def overall_tps(self) -> float:
        return _rate(self.submitted_records, self.total_elapsed_seconds)

    @property
    def min_tps(self) -> float:
        samples = self.tps_samples
        return min(samples) if samples else 0.0

    @property
    def max_tps(self) -> float:
        samples = self.tps_samples
        return max(samples) if samples else 0.0

    @property
    def avg_tps(self) -> float:
        samples = self.tps_samples
        return statistics.mean(samples) if samples else 0.0

    @property
    def median_tps(self) -> float:
        samples = self.tps_samples
        return statistics.median(samples) if samples else 0.0

    @property
    def stddev_tps(self) -> float:
        samples = self.tps_samples
        return statistics.stdev(samples) if len(samples) > 1 else 0.0

    def summary(self) -> dict:
        """Rounded, JSON-ready view of the run."""
        return {
            "total_records": self.total_records,
            "submitted_records": self.submitted_records,
            "records_written": self.records_written,
            "failed_records": self.failed_records,
            "batches": len(self.outcomes),
            "batches_succeeded": self.batches_succeeded,
            "batches_failed": self.batches_failed,
            "total_elapsed_millis": self.total_elapsed_millis,
            "overall_tps": _round_float(self.overall_tps),
            "granularity": self.granularity.value,
            "samples": len(self.tps_samples),
            "tps": {
                "min": _round_float(self.min_tps),
                "max": _round_float(self.max_tps),
                "avg": _round_float(self.avg_tps),
                "median": _round_float(self.median_tps),
                "stddev": _round_float(self.stddev_tps),
            },
            "error_counts": self.error_counts,
        }


def aggregate(
    outcomes: Sequence[BatchOutcome],
    total_elapsed_seconds: float,
    chunk_timings: Sequence[ChunkTiming] = (),
    granularity: Granularity = Granularity.BATCH,
) -> RunMetrics:
    """Build `RunMetrics` from collected outcomes and wall-clock timings."""
    return RunMetrics(
        outcomes=list(outcomes),
        chunk_timings=list(chunk_timings),
        total_elapsed_seconds=total_elapsed_seconds,
        granularity=Granularity(granularity),
    )


__all__ = ["Granularity", "RunMetrics", "aggregate"]
