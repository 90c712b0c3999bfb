"""
Pytest configuration for the write throughput benchmark.

Provides fixtures for:
- Settings isolated from the developer's environment and `.env`
- Instrumented fake stores for dispatcher and runner tests
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generator, List, Optional, Sequence, Tuple

import pytest

from write_bench.config import Settings, get_settings
from write_bench.domain.models import SubmitResult, SyntheticRecord
from write_bench.infrastructure.memory_store import InMemoryDocumentStore

_ENV_VARS = (
    "COSMOS_URL",
    "COSMOS_KEY",
    "DATABASE_NAME",
    "CONTAINER_NAME",
    "RECORD_QUANTITY",
    "BATCH_SIZE",
    "MAX_BATCH_SIZE",
    "CONCURRENCY",
    "BUFFER_SIZE",
    "THROUGHPUT",
    "PARTITION_MODE",
    "PARTITION_KEY",
    "RANDOM_SEED",
    "PRE_CLEAN",
    "VERIFY_COUNT",
    "TEARDOWN",
    "CHECK_DATABASE",
    "CREATE_CONTAINER",
    "RESULTS_DIR",
    "LOG_JSON",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path) -> Generator[None, None, None]:
    """Keep host environment variables and `.env` files out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings(tmp_path) -> Callable[..., Settings]:
    """
    Build Settings for a dry run; keyword overrides use field names.
    """

    def _make(**overrides: Any) -> Settings:
        values = {
            "cosmos_url": "https://example.documents.azure.com:443/",
            "cosmos_key": "dGVzdC1rZXktdGVzdC1rZXk=",
            "database_name": "benchdb",
            "record_quantity": 500,
            "batch_size": 100,
            "concurrency": 5,
            "random_seed": 42,
            "results_dir": str(tmp_path / "results"),
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


class RecordingStore(InMemoryDocumentStore):
    """
    In-memory store that records every call and the peak number of
    concurrent batch submissions.
    """

    def __init__(self, latency_seconds: float = 0.0, **kwargs: Any) -> None:
        super().__init__(latency_seconds=latency_seconds, **kwargs)
        self.calls: List[Tuple[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def database_exists(self) -> bool:
        self.calls.append(("database_exists", None))
        return await super().database_exists()

    async def create_collection(self, name: str, partition_key_path: str, throughput: int) -> bool:
        self.calls.append(("create_collection", name))
        return await super().create_collection(name, partition_key_path, throughput)

    async def delete_collection(self, name: str) -> None:
        self.calls.append(("delete_collection", name))
        await super().delete_collection(name)

    async def submit_batch(
        self, partition_key: str, records: Sequence[SyntheticRecord]
    ) -> SubmitResult:
        self.calls.append(("submit_batch", len(records)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            return await super().submit_batch(partition_key, records)
        finally:
            self.in_flight -= 1

    async def count_records(self) -> int:
        self.calls.append(("count_records", None))
        return await super().count_records()

    async def close(self) -> None:
        self.calls.append(("close", None))
        await super().close()

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


class GateProbe:
    """Submit function that tracks how many calls overlap."""

    def __init__(self, delay: float = 0.01, fail_indexes: Optional[dict] = None) -> None:
        self.delay = delay
        self.fail_indexes = fail_indexes or {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.seen: List[int] = []

    async def __call__(self, batch) -> SubmitResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.seen.append(batch.index)
        try:
            await asyncio.sleep(self.delay)
            failure = self.fail_indexes.get(batch.index)
            if isinstance(failure, BaseException):
                raise failure
            if failure is not None:
                return SubmitResult(success=False, status_code=failure)
            return SubmitResult(success=True)
        finally:
            self.in_flight -= 1


@pytest.fixture
def make_probe() -> Callable[..., GateProbe]:
    return GateProbe


@pytest.fixture
def make_recording_store() -> Callable[..., RecordingStore]:
    return RecordingStore
