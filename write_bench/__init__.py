"""
Write Throughput Benchmark - measure batched insert throughput into Cosmos DB.

The package generates synthetic account records, plans them into
transactional batches, dispatches the batches under a bounded concurrency
limit and reports records-per-second:

- Record generation with shared, per-batch or per-record partition keys
- Batch/buffer planning with fail-fast validation
- Semaphore-bounded async dispatch with per-batch fault isolation
- Overall and per-sample TPS aggregation with an error tally
- Provision, verify and guaranteed teardown around every run
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from write_bench.config import PartitionMode, Settings, get_settings, load_settings
from write_bench.dispatcher import Dispatcher, dispatch
from write_bench.errors import (
    BenchmarkError,
    ConfigurationError,
    ProvisioningError,
    SubmissionError,
    VerificationDiscrepancy,
)
from write_bench.generator import RecordGenerator
from write_bench.metrics import RunMetrics, aggregate
from write_bench.orchestrator import BenchmarkRunner, RunReport, run_benchmark
from write_bench.planner import BatchPlan, plan
from write_bench.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "PartitionMode",
    "Settings",
    "get_settings",
    "load_settings",
    # Pipeline
    "RecordGenerator",
    "BatchPlan",
    "plan",
    "Dispatcher",
    "dispatch",
    "RunMetrics",
    "aggregate",
    # Orchestration
    "BenchmarkRunner",
    "RunReport",
    "run_benchmark",
    # Errors
    "BenchmarkError",
    "ConfigurationError",
    "ProvisioningError",
    "SubmissionError",
    "VerificationDiscrepancy",
    # Logging
    "configure_logging",
    "get_logger",
]
