"""
Document store capability used by the benchmark runner.

The runner only needs create/delete of one container, atomic batch submission,
a record count, and enumerate/delete for pre-cleaning. Anything satisfying this
protocol can be benchmarked; the Cosmos DB adapter and the in-memory store are
the two shipped implementations.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, Tuple, runtime_checkable

from write_bench.domain.models import SubmitResult, SyntheticRecord


@runtime_checkable
class DocumentStore(Protocol):
    """
    Async interface over the target database.

    Implementations bind to one database and one container name at
    construction; `create_collection`/`delete_collection` still take the name
    so the runner's logs and calls stay explicit.
    """

    name: str

    async def database_exists(self) -> bool:
        ...

    async def create_collection(self, name: str, partition_key_path: str, throughput: int) -> bool:
        """
        Create the container. Returns False when it already existed, in which
        case it belongs to someone else and must not be torn down.
        """
        ...

    async def delete_collection(self, name: str) -> None:
        ...

    async def submit_batch(
        self, partition_key: str, records: Sequence[SyntheticRecord]
    ) -> SubmitResult:
        """
        Insert all records atomically under one partition key.

        Returns a failed `SubmitResult` (or raises `SubmissionError`) when the
        service rejects the batch; nothing from a rejected batch is persisted.
        """
        ...

    async def count_records(self) -> int:
        ...

    async def list_record_keys(self) -> List[Tuple[str, str]]:
        """Return `(id, partition_key)` for every stored record."""
        ...

    async def delete_record(self, record_id: str, partition_key: str) -> None:
        ...

    async def close(self) -> None:
        ...


__all__ = ["DocumentStore"]
