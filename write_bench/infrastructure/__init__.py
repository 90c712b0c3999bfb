"""
Infrastructure package for the write throughput benchmark.

Centralizes store connectivity: the `DocumentStore` protocol, the Cosmos DB
adapter, the in-memory store and the factory that picks between them.
"""

from write_bench.infrastructure.abstract import DocumentStore
from write_bench.infrastructure.cosmos_store import CosmosDocumentStore
from write_bench.infrastructure.db_factory import (
    build_cosmos_client,
    create_store,
    probe_database,
)
from write_bench.infrastructure.memory_store import InMemoryDocumentStore

__all__ = [
    "CosmosDocumentStore",
    "DocumentStore",
    "InMemoryDocumentStore",
    "build_cosmos_client",
    "create_store",
    "probe_database",
]
