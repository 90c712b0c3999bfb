"""
Bounded concurrent dispatch of batches to a document store.

Every batch is scheduled up front, but an `asyncio.Semaphore` admits at most
`concurrency_limit` submissions at a time. Each task builds its own
`BatchOutcome`; results are collected with `asyncio.gather` after all tasks
finish, so no shared counters are mutated concurrently.

Failures are isolated per batch and never retried. No timeout is applied here;
the store client's own timeouts apply unchanged.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, TypeVar

from write_bench.domain.models import Batch, BatchOutcome, SubmitResult
from write_bench.errors import ConfigurationError, SubmissionError
from write_bench.utils.logging import get_logger

log = get_logger(__name__)

SubmitFn = Callable[[Batch], Awaitable[SubmitResult]]

T = TypeVar("T")
R = TypeVar("R")

EXCEPTION_CODE = "exception"
FAILED_CODE = "failed"
NOT_SUBMITTED_CODE = "not_submitted"


def _check_limit(concurrency_limit: int) -> None:
    if concurrency_limit <= 0:
        raise ConfigurationError(f"concurrency limit must be > 0 (got {concurrency_limit})")


class Dispatcher:
    """
    Submit batches under a concurrency ceiling.

    A dispatcher may be reused across chunks; `request_stop` affects every
    later admission, including later `dispatch` calls. An outcome whose error
    code is in `fatal_codes` (e.g. "401") requests a stop on its own.
    """

    def __init__(
        self,
        concurrency_limit: int,
        submit_fn: SubmitFn,
        fatal_codes: Iterable[str] = (),
    ) -> None:
        _check_limit(concurrency_limit)
        self.concurrency_limit = concurrency_limit
        self.fatal_codes = frozenset(fatal_codes)
        self._submit_fn = submit_fn
        self._stop_requested = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """
        Stop admitting new batches. In-flight submissions run to completion.
        """
        if not self._stop_requested:
            log.warning("[DISPATCH] Stop requested; pending batches will not be submitted")
        self._stop_requested = True

    async def _submit_one(self, batch: Batch, gate: asyncio.Semaphore) -> BatchOutcome:
        async with gate:
            if self._stop_requested:
                return BatchOutcome(
                    index=batch.index,
                    chunk_index=batch.chunk_index,
                    batch_size=batch.size,
                    success=False,
                    error_code=NOT_SUBMITTED_CODE,
                )

            start = time.perf_counter()
            try:
                result = await self._submit_fn(batch)
                success = result.success
                error_code = None if success else (result.status_code or FAILED_CODE)
            except SubmissionError as exc:
                success = False
                error_code = exc.status_code or EXCEPTION_CODE
                log.warning(
                    f"[BATCH {batch.index}] Submission rejected: {exc}",
                    extra={"batch": batch.index, "status_code": error_code},
                )
            except Exception as exc:  # noqa: BLE001 - recorded in the outcome, not retried
                success = False
                error_code = EXCEPTION_CODE
                log.warning(
                    f"[BATCH {batch.index}] Submission raised {type(exc).__name__}: {exc}",
                    extra={"batch": batch.index, "error_type": type(exc).__name__},
                )
            elapsed_millis = (time.perf_counter() - start) * 1000.0

        if error_code in self.fatal_codes:
            log.error(
                f"[BATCH {batch.index}] Fatal status {error_code}",
                extra={"batch": batch.index, "status_code": error_code},
            )
            self.request_stop()
        elif success:
            log.debug(
                f"[BATCH {batch.index}] Inserted {batch.size} records",
                extra={"batch": batch.index, "elapsed_ms": round(elapsed_millis, 3)},
            )
        return BatchOutcome(
            index=batch.index,
            chunk_index=batch.chunk_index,
            batch_size=batch.size,
            success=success,
            error_code=error_code,
            elapsed_millis=elapsed_millis,
        )

    async def dispatch(self, batches: Sequence[Batch]) -> List[BatchOutcome]:
        """
        Submit all batches and return one outcome per batch.

        Outcomes are returned in submission order for convenience, but callers
        should key on `BatchOutcome.index`.
        """
        gate = asyncio.Semaphore(self.concurrency_limit)
        tasks = [self._submit_one(batch, gate) for batch in batches]
        return list(await asyncio.gather(*tasks))


async def dispatch(
    batches: Sequence[Batch], concurrency_limit: int, submit_fn: SubmitFn
) -> List[BatchOutcome]:
    """One-shot helper around `Dispatcher.dispatch`."""
    return await Dispatcher(concurrency_limit, submit_fn).dispatch(batches)


async def bounded_gather(
    items: Iterable[T],
    concurrency_limit: int,
    fn: Callable[[T], Awaitable[R]],
    on_error: Optional[Callable[[T, Exception], None]] = None,
) -> List[Optional[R]]:
    """
    Apply `fn` to every item with at most `concurrency_limit` calls in flight.

    Exceptions are passed to `on_error` (the item's result is then None); with
    no handler they propagate once every call has finished.
    """
    _check_limit(concurrency_limit)
    gate = asyncio.Semaphore(concurrency_limit)

    async def _run(item: T) -> Optional[R]:
        async with gate:
            try:
                return await fn(item)
            except Exception as exc:
                if on_error is None:
                    raise
                on_error(item, exc)
                return None

    results = await asyncio.gather(*(_run(item) for item in items), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)  # type: ignore[arg-type]


__all__ = [
    "EXCEPTION_CODE",
    "FAILED_CODE",
    "NOT_SUBMITTED_CODE",
    "Dispatcher",
    "SubmitFn",
    "bounded_gather",
    "dispatch",
]
