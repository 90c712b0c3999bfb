"""
Error taxonomy for the write throughput benchmark.

Only `SubmissionError` is expected during a run and is absorbed per batch by the
dispatcher. Configuration and provisioning errors propagate to the runner, which
tears down whatever it provisioned before re-raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class BenchmarkError(Exception):
    """Base class for all benchmark errors."""


class ConfigurationError(BenchmarkError):
    """Missing or out-of-range settings. Raised before any store call."""


class ProvisioningError(BenchmarkError):
    """Database or container could not be checked, created or deleted."""


class SubmissionError(BenchmarkError):
    """
    A batch submission failed with a structured status from the store.

    Stores raise this for service-reported failures (e.g. throttling); the
    dispatcher records `status_code` in the error tally.
    """

    def __init__(self, message: str, status_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class VerificationDiscrepancy:
    """Post-run count mismatch. Reported as a warning, never raised."""

    initial_count: int
    expected_written: int
    final_count: int

    @property
    def expected_count(self) -> int:
        return self.initial_count + self.expected_written

    @property
    def difference(self) -> int:
        return self.final_count - self.expected_count

    def describe(self) -> str:
        return (
            f"expected {self.expected_count} records "
            f"({self.initial_count} initial + {self.expected_written} written), "
            f"found {self.final_count} (difference {self.difference:+d})"
        )


__all__ = [
    "BenchmarkError",
    "ConfigurationError",
    "ProvisioningError",
    "SubmissionError",
    "VerificationDiscrepancy",
]
