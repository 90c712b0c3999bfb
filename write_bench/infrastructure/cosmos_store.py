"""
Azure Cosmos DB adapter for the benchmark runner.

Batches are written with `execute_item_batch` (transactional batch, one
partition key, all-or-nothing). The SDK raises `CosmosBatchOperationError` when
any operation in the batch fails; that and other `CosmosHttpResponseError`s are
turned into a failed `SubmitResult` carrying the HTTP status code. Transport
errors propagate and are classified as "exception" by the dispatcher.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from azure.cosmos import PartitionKey, exceptions
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy

from write_bench.domain.models import SubmitResult, SyntheticRecord
from write_bench.errors import ProvisioningError
from write_bench.utils.logging import get_logger

log = get_logger(__name__)

COUNT_QUERY = "SELECT VALUE COUNT(1) FROM c"


def _status(exc: exceptions.CosmosHttpResponseError) -> str:
    return str(exc.status_code) if exc.status_code is not None else "exception"


class CosmosDocumentStore:
    """
    `DocumentStore` implementation over the async Cosmos DB client.
    """

    name = "cosmos"

    def __init__(
        self,
        client: CosmosClient,
        database_name: str,
        container_name: str,
        partition_key_path: str = "/account",
    ) -> None:
        self._client = client
        self.database_name = database_name
        self.container_name = container_name
        self.partition_key_path = partition_key_path
        self._database: DatabaseProxy = client.get_database_client(database_name)
        self._container: ContainerProxy = self._database.get_container_client(container_name)

    async def database_exists(self) -> bool:
        try:
            await self._database.read()
        except exceptions.CosmosResourceNotFoundError:
            return False
        return True

    async def create_collection(self, name: str, partition_key_path: str, throughput: int) -> bool:
        created = True
        try:
            self._container = await self._database.create_container(
                id=name,
                partition_key=PartitionKey(path=partition_key_path),
                offer_throughput=throughput,
            )
        except exceptions.CosmosResourceExistsError:
            created = False
            self._container = self._database.get_container_client(name)
        except exceptions.CosmosHttpResponseError as exc:
            raise ProvisioningError(
                f"could not create container '{name}': {_status(exc)} {exc.message}"
            ) from exc
        properties = await self._container.read()
        log.info(
            f"Container is ready: {properties['id']}",
            extra={"container": name, "throughput": throughput, "created": created},
        )
        return created

    async def delete_collection(self, name: str) -> None:
        try:
            await self._database.delete_container(name)
        except exceptions.CosmosHttpResponseError as exc:
            raise ProvisioningError(
                f"could not delete container '{name}': {_status(exc)} {exc.message}"
            ) from exc

    async def submit_batch(
        self, partition_key: str, records: Sequence[SyntheticRecord]
    ) -> SubmitResult:
        operations = [("create", (record.to_document(),)) for record in records]
        try:
            await self._container.execute_item_batch(
                batch_operations=operations, partition_key=partition_key
            )
        except exceptions.CosmosBatchOperationError as exc:
            log.debug(
                f"Batch rejected at operation {exc.error_index}",
                extra={"status_code": exc.status_code},
            )
            return SubmitResult(success=False, status_code=_status(exc))
        except exceptions.CosmosHttpResponseError as exc:
            return SubmitResult(success=False, status_code=_status(exc))
        return SubmitResult(success=True)

    async def count_records(self) -> int:
        counts = [value async for value in self._container.query_items(query=COUNT_QUERY)]
        return int(counts[0]) if counts else 0

    async def list_record_keys(self) -> List[Tuple[str, str]]:
        field_name = self.partition_key_path.lstrip("/")
        query = f"SELECT c.id, c['{field_name}'] AS pk FROM c"
        return [
            (item["id"], item.get("pk"))
            async for item in self._container.query_items(query=query)
        ]

    async def delete_record(self, record_id: str, partition_key: str) -> None:
        await self._container.delete_item(item=record_id, partition_key=partition_key)

    async def close(self) -> None:
        await self._client.close()


__all__ = ["COUNT_QUERY", "CosmosDocumentStore"]
