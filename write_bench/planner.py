"""
Batch planning: split a target record count into chunks and batches.

A chunk ("buffer") is a group of batches dispatched and timed together for
progress reporting. Without a buffer size the whole run is a single chunk.
Validation happens here, before any store is created.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from write_bench.domain.models import Batch
from write_bench.errors import ConfigurationError
from write_bench.generator import RecordGenerator

DEFAULT_MAX_BATCH_SIZE = 100


@dataclass(frozen=True)
class Chunk:
    index: int
    batch_sizes: Tuple[int, ...]

    @property
    def records(self) -> int:
        return sum(self.batch_sizes)


@dataclass(frozen=True)
class BatchPlan:
    total_records: int
    batch_size: int
    buffer_size: Optional[int]
    chunks: Tuple[Chunk, ...]

    @property
    def batch_sizes(self) -> List[int]:
        return [size for chunk in self.chunks for size in chunk.batch_sizes]

    @property
    def batch_count(self) -> int:
        return sum(len(chunk.batch_sizes) for chunk in self.chunks)


def _slice(total: int, size: int) -> List[int]:
    sizes: List[int] = []
    start = 0
    while start < total:
        end = min(start + size, total)
        sizes.append(end - start)
        start = end
    return sizes


def validate_plan(
    total_records: int,
    batch_size: int,
    buffer_size: Optional[int] = None,
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
) -> None:
    """
    Check the batching parameters.

    Raises
    ------
    ConfigurationError
        On any out-of-range combination.
    """
    if total_records <= 0:
        raise ConfigurationError(f"total_records must be > 0 (got {total_records})")
    if batch_size <= 0:
        raise ConfigurationError(f"batch_size must be > 0 (got {batch_size})")
    if batch_size > total_records:
        raise ConfigurationError(
            f"batch_size ({batch_size}) must not exceed total_records ({total_records})"
        )
    if batch_size > max_batch_size:
        raise ConfigurationError(
            f"batch_size ({batch_size}) exceeds the store's batch limit ({max_batch_size})"
        )
    if buffer_size is not None:
        if buffer_size < batch_size:
            raise ConfigurationError(
                f"buffer_size ({buffer_size}) must be >= batch_size ({batch_size})"
            )
        if buffer_size > total_records:
            raise ConfigurationError(
                f"buffer_size ({buffer_size}) must not exceed total_records ({total_records})"
            )


def plan(
    total_records: int,
    batch_size: int,
    buffer_size: Optional[int] = None,
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
) -> BatchPlan:
    """
    Divide `total_records` into chunks of batches.

    Full batches come first; a shorter remainder batch, if any, closes each
    chunk.
    """
    validate_plan(total_records, batch_size, buffer_size, max_batch_size)

    chunk_totals = _slice(total_records, buffer_size) if buffer_size else [total_records]
    chunks = tuple(
        Chunk(index=index, batch_sizes=tuple(_slice(records, batch_size)))
        for index, records in enumerate(chunk_totals)
    )
    return BatchPlan(
        total_records=total_records,
        batch_size=batch_size,
        buffer_size=buffer_size,
        chunks=chunks,
    )


def materialize(chunk: Chunk, generator: RecordGenerator, first_index: int = 0) -> List[Batch]:
    """Generate the records for each batch of `chunk`."""
    batches: List[Batch] = []
    for offset, size in enumerate(chunk.batch_sizes):
        records = generator.generate(size)
        batches.append(
            Batch(
                index=first_index + offset,
                chunk_index=chunk.index,
                partition_key=records[0].partition_key,
                records=tuple(records),
            )
        )
    return batches


__all__ = [
    "DEFAULT_MAX_BATCH_SIZE",
    "BatchPlan",
    "Chunk",
    "materialize",
    "plan",
    "validate_plan",
]
