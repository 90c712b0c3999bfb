"""
Domain models for the write throughput benchmark.

`SyntheticRecord` is the typed document written to the store; `to_document` is
the only place it is mapped to the store's JSON shape. Batches and outcomes are
plain frozen dataclasses that live for the duration of a single run.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field


class SyntheticRecord(BaseModel):
    """
    A single synthetic account document.
    """

    id: str = Field(..., description="Unique document id (uuid4).")
    partition_key: str = Field(..., alias="account", description="Partition key value.")
    balance: float = Field(..., ge=1000.0, lt=5000.0, description="Random balance.")
    description: str = Field("This is a description of the document")
    time: int = Field(..., description="Creation time, epoch milliseconds.")
    timec: int = Field(..., description="Client-side commit time, epoch milliseconds.")
    pid: str = Field(..., description="Random process/correlation id.")
    random_value: int = Field(..., alias="randomValue", ge=-10_000, le=10_000)

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    def to_document(self) -> Dict[str, Any]:
        """Serialize with the store-facing field names."""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class Batch:
    """Records submitted together as one transactional unit."""

    index: int
    chunk_index: int
    partition_key: str
    records: Tuple[SyntheticRecord, ...]

    def __post_init__(self) -> None:
        if not self.records:
            raise ValueError("a batch must contain at least one record")
        for record in self.records:
            if record.partition_key != self.partition_key:
                raise ValueError(
                    f"batch {self.index} mixes partition keys "
                    f"({record.partition_key!r} != {self.partition_key!r})"
                )

    @property
    def size(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class SubmitResult:
    success: bool
    status_code: Optional[str] = None


@dataclass(frozen=True)
class BatchOutcome:
    index: int
    chunk_index: int
    batch_size: int
    success: bool
    error_code: Optional[str] = None
    elapsed_millis: float = 0.0


@dataclass(frozen=True)
class ChunkTiming:
    """Wall-clock time around the dispatch of one chunk."""

    index: int
    records: int
    elapsed_seconds: float


__all__ = ["Batch", "BatchOutcome", "ChunkTiming", "SubmitResult", "SyntheticRecord"]
