"""
Synthetic record generation.

Records carry random values only; the partition key is decided by the configured
`PartitionMode`. Passing a seed makes ids, keys and values reproducible, which
the tests rely on.
"""

from __future__ import annotations

import random
import time
import uuid
from typing import Callable, List, Optional

from write_bench.config import DEFAULT_PARTITION_KEY, PartitionMode
from write_bench.domain.models import SyntheticRecord

BALANCE_RANGE = (1000.0, 5000.0)
RANDOM_VALUE_RANGE = (-10_000, 10_000)


def _now_millis() -> int:
    return int(time.time() * 1000)


class RecordGenerator:
    """
    Produce `SyntheticRecord` values for one run.

    In `PER_BATCH` mode each `generate` call draws one fresh key shared by the
    records it returns, so callers generate once per batch.
    """

    def __init__(
        self,
        mode: PartitionMode = PartitionMode.SHARED,
        shared_key: str = DEFAULT_PARTITION_KEY,
        seed: Optional[int] = None,
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        self.mode = PartitionMode(mode)
        self.shared_key = shared_key
        self._rng = random.Random(seed)
        self._clock = clock

    def _uuid(self) -> str:
        return str(uuid.UUID(int=self._rng.getrandbits(128), version=4))

    def _record(self, partition_key: str) -> SyntheticRecord:
        now = self._clock()
        low, high = BALANCE_RANGE
        balance = self._rng.uniform(low, high)
        # uniform() may return the upper bound on rounding
        if balance >= high:
            balance = low
        return SyntheticRecord(
            id=self._uuid(),
            partition_key=partition_key,
            balance=balance,
            time=now,
            timec=now,
            pid=self._uuid(),
            random_value=self._rng.randint(*RANDOM_VALUE_RANGE),
        )

    def generate(self, n: int) -> List[SyntheticRecord]:
        if n < 0:
            raise ValueError(f"record count must be non-negative (got {n})")
        if self.mode is PartitionMode.SHARED:
            return [self._record(self.shared_key) for _ in range(n)]
        if self.mode is PartitionMode.PER_BATCH:
            key = self._uuid()
            return [self._record(key) for _ in range(n)]
        return [self._record(self._uuid()) for _ in range(n)]


__all__ = ["BALANCE_RANGE", "RANDOM_VALUE_RANGE", "RecordGenerator"]
