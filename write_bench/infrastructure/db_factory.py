"""
Store factory utilities for the write throughput benchmark.

Builds the async Cosmos DB client from settings, or the in-memory store for dry
runs. Only the database existence probe is retried (via tenacity) on transient
transport errors; batch submissions are never retried.
"""

from __future__ import annotations

from typing import Optional

from azure.core.exceptions import ServiceRequestError, ServiceResponseError
from azure.cosmos.aio import CosmosClient
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from write_bench.config import Settings, get_settings
from write_bench.errors import ConfigurationError
from write_bench.infrastructure.abstract import DocumentStore
from write_bench.infrastructure.cosmos_store import CosmosDocumentStore
from write_bench.infrastructure.memory_store import InMemoryDocumentStore


def build_cosmos_client(settings: Optional[Settings] = None) -> CosmosClient:
    """
    Create an async Cosmos DB client for the configured account.

    Raises
    ------
    ConfigurationError
        If the endpoint or key is missing.
    """
    settings = settings or get_settings()
    if not settings.cosmos_url or not settings.cosmos_key:
        raise ConfigurationError("COSMOS_URL and COSMOS_KEY must be set")
    return CosmosClient(
        settings.cosmos_url,
        credential=settings.cosmos_key,
        consistency_level=settings.consistency_level,
    )


def create_store(settings: Optional[Settings] = None, dry_run: bool = False) -> DocumentStore:
    """
    Build the document store the runner will benchmark.

    Parameters
    ----------
    settings : Settings | None
        Effective settings; defaults to the cached environment settings.
    dry_run : bool
        Use the in-memory store instead of Cosmos DB.
    """
    settings = settings or get_settings()
    if dry_run:
        return InMemoryDocumentStore(container_name=settings.container_name)
    if not settings.database_name:
        raise ConfigurationError("DATABASE_NAME must be set")
    return CosmosDocumentStore(
        client=build_cosmos_client(settings),
        database_name=settings.database_name,
        container_name=settings.container_name,
        partition_key_path=settings.partition_key_path,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((ServiceRequestError, ServiceResponseError)),
    reraise=True,
)
async def probe_database(store: DocumentStore) -> bool:
    """
    Check that the target database exists, retrying transient transport errors.

    Retries up to 3 times with exponential backoff.
    """
    return await store.database_exists()


__all__ = ["build_cosmos_client", "create_store", "probe_database"]
