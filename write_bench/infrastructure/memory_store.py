"""
In-memory document store.

Used by `write-bench run --dry-run` to exercise the full pipeline without a
Cosmos DB account, and by the tests. Supports injected latency and per-batch
failures so throttling and transport faults can be simulated.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from write_bench.domain.models import SubmitResult, SyntheticRecord
from write_bench.errors import ProvisioningError

FailureHook = Callable[[int, str, Sequence[SyntheticRecord]], Optional[SubmitResult]]


class InMemoryDocumentStore:
    """
    Dict-backed store with one database and any number of containers.

    Parameters
    ----------
    container_name : str
        Container that batch/count/delete operations target.
    latency_seconds : float
        Sleep applied to each batch submission.
    failure_hook : callable, optional
        Called with `(call_number, partition_key, records)` before a batch is
        applied. It may return a failed `SubmitResult` or raise to simulate a
        transport fault; returning None lets the batch through.
    """

    name = "memory"

    def __init__(
        self,
        container_name: str = "demo",
        latency_seconds: float = 0.0,
        failure_hook: Optional[FailureHook] = None,
        database_present: bool = True,
    ) -> None:
        self.container_name = container_name
        self.latency_seconds = latency_seconds
        self.failure_hook = failure_hook
        self.database_present = database_present
        self.containers: Dict[str, Dict[Tuple[str, str], dict]] = {}
        self.submit_calls = 0
        self.closed = False

    def _container(self) -> Dict[Tuple[str, str], dict]:
        try:
            return self.containers[self.container_name]
        except KeyError:
            raise ProvisioningError(f"container '{self.container_name}' does not exist") from None

    async def database_exists(self) -> bool:
        return self.database_present

    async def create_collection(self, name: str, partition_key_path: str, throughput: int) -> bool:
        del partition_key_path, throughput
        if name in self.containers:
            return False
        self.containers[name] = {}
        return True

    async def delete_collection(self, name: str) -> None:
        if self.containers.pop(name, None) is None:
            raise ProvisioningError(f"container '{name}' does not exist")

    async def submit_batch(
        self, partition_key: str, records: Sequence[SyntheticRecord]
    ) -> SubmitResult:
        self.submit_calls += 1
        call_number = self.submit_calls
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        if self.failure_hook is not None:
            verdict = self.failure_hook(call_number, partition_key, records)
            if verdict is not None and not verdict.success:
                return verdict

        container = self._container()
        keys = [(record.id, partition_key) for record in records]
        if any(key in container for key in keys):
            return SubmitResult(success=False, status_code="409")
        for key, record in zip(keys, records):
            container[key] = record.to_document()
        return SubmitResult(success=True)

    async def count_records(self) -> int:
        return len(self._container())

    async def list_record_keys(self) -> List[Tuple[str, str]]:
        return list(self._container().keys())

    async def delete_record(self, record_id: str, partition_key: str) -> None:
        self._container().pop((record_id, partition_key), None)

    async def close(self) -> None:
        self.closed = True


__all__ = ["FailureHook", "InMemoryDocumentStore"]
