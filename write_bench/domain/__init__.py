"""
Domain package for the write throughput benchmark.

Exports the record, batch and outcome types shared by the generator, planner,
dispatcher and aggregator.
"""

from write_bench.domain.models import (
    Batch,
    BatchOutcome,
    ChunkTiming,
    SubmitResult,
    SyntheticRecord,
)

__all__ = [
    "Batch",
    "BatchOutcome",
    "ChunkTiming",
    "SubmitResult",
    "SyntheticRecord",
]
