"""
Utilities package for the write throughput benchmark.

Exports shared helpers for logging and profiling. Keep this package free of
domain-specific logic.
"""

from write_bench.utils.logging import configure_logging, get_logger
from write_bench.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
