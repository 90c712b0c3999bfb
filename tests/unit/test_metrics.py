from __future__ import annotations

import pytest

from write_bench.domain.models import BatchOutcome, ChunkTiming
from write_bench.metrics import Granularity, aggregate

# Two chunks of different size and duration: 1000 records in 1s, 200 in 1s.
CHUNKS = [
    ChunkTiming(index=0, records=1000, elapsed_seconds=1.0),
    ChunkTiming(index=1, records=200, elapsed_seconds=1.0),
]
EXPECTED_OVERALL_TPS = 600.0  # 1200 records / 2 s
EXPECTED_AVG_TPS = 600.0  # (1000 + 200) / 2 samples


def _outcome(index, size=100, success=True, code=None, millis=100):
    return BatchOutcome(
        index=index,
        chunk_index=0,
        batch_size=size,
        success=success,
        error_code=code,
        elapsed_millis=millis,
    )


def test_overall_tps_is_ratio_of_totals_not_mean_of_samples():
    outcomes = [_outcome(0, size=100, millis=100), _outcome(1, size=100, millis=400)]

    metrics = aggregate(outcomes, total_elapsed_seconds=0.4)

    assert metrics.overall_tps == pytest.approx(500.0)
    assert metrics.tps_samples == pytest.approx([1000.0, 250.0])
    assert metrics.avg_tps == pytest.approx(625.0)
    assert metrics.overall_tps != pytest.approx(metrics.avg_tps)
    assert metrics.min_tps == pytest.approx(250.0)
    assert metrics.max_tps == pytest.approx(1000.0)


def test_chunk_granularity_uses_chunk_timings():
    outcomes = [_outcome(i, size=100) for i in range(12)]

    metrics = aggregate(
        outcomes,
        total_elapsed_seconds=2.0,
        chunk_timings=CHUNKS,
        granularity=Granularity.CHUNK,
    )

    assert metrics.tps_samples == pytest.approx([1000.0, 200.0])
    assert metrics.overall_tps == pytest.approx(EXPECTED_OVERALL_TPS)
    assert metrics.avg_tps == pytest.approx(EXPECTED_AVG_TPS)
    assert metrics.median_tps == pytest.approx(600.0)


def test_uneven_chunks_make_overall_and_average_diverge():
    chunks = [
        ChunkTiming(index=0, records=1000, elapsed_seconds=1.0),
        ChunkTiming(index=1, records=100, elapsed_seconds=0.5),
    ]
    metrics = aggregate(
        [_outcome(i) for i in range(11)],
        total_elapsed_seconds=1.5,
        chunk_timings=chunks,
        granularity="chunk",
    )

    assert metrics.overall_tps == pytest.approx(1100 / 1.5)
    assert metrics.avg_tps == pytest.approx(600.0)


def test_empty_samples_yield_zero_not_errors():
    metrics = aggregate([], total_elapsed_seconds=0.0)

    assert metrics.tps_samples == []
    assert metrics.min_tps == 0.0
    assert metrics.max_tps == 0.0
    assert metrics.avg_tps == 0.0
    assert metrics.median_tps == 0.0
    assert metrics.stddev_tps == 0.0
    assert metrics.overall_tps == 0.0
    assert metrics.error_counts == {}


def test_error_tally_and_record_counts():
    outcomes = [
        _outcome(0),
        _outcome(1, success=False, code="429"),
        _outcome(2, success=False, code="429"),
        _outcome(3, success=False, code="exception"),
        _outcome(4, size=50),
    ]

    metrics = aggregate(outcomes, total_elapsed_seconds=1.0)

    assert metrics.error_counts == {"429": 2, "exception": 1}
    assert metrics.total_records == 450
    assert metrics.records_written == 150
    assert metrics.failed_records == 300
    # failed batches do not contribute samples
    assert len(metrics.tps_samples) == 2


def test_summary_is_rounded_and_json_ready():
    outcomes = [_outcome(0, millis=300), _outcome(1, millis=300)]

    summary = aggregate(outcomes, total_elapsed_seconds=0.3).summary()

    assert summary["overall_tps"] == 666.67
    assert summary["total_elapsed_millis"] == 300
    assert summary["tps"]["avg"] == 333.33
    assert summary["granularity"] == "batch"


def test_batches_never_submitted_do_not_inflate_overall_tps():
    outcomes = [_outcome(0, success=False, code="403", millis=50)] + [
        _outcome(i, success=False, code="not_submitted", millis=0) for i in range(1, 10)
    ]

    metrics = aggregate(outcomes, total_elapsed_seconds=0.05)

    assert metrics.total_records == 1000
    assert metrics.submitted_records == 100
    assert metrics.overall_tps == pytest.approx(2000.0)
    assert metrics.error_counts == {"403": 1, "not_submitted": 9}
    assert len(metrics.outcomes) == 10


def test_sub_millisecond_batches_still_produce_samples():
    outcomes = [_outcome(0, millis=0.25), _outcome(1, millis=0.5)]

    metrics = aggregate(outcomes, total_elapsed_seconds=0.0005)

    assert metrics.tps_samples == pytest.approx([400_000.0, 200_000.0])
    assert metrics.min_tps == pytest.approx(200_000.0)
    assert metrics.avg_tps == pytest.approx(300_000.0)
