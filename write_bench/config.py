"""
Configuration settings for the write throughput benchmark.

Uses Pydantic Settings to load environment variables for the Cosmos DB account,
the benchmark shape (records, batch size, concurrency, buffer), lifecycle toggles
and logging. `load_settings` converts validation failures into
`ConfigurationError` so the CLI can fail fast before touching the network.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from write_bench.errors import ConfigurationError

DEFAULT_PARTITION_KEY = "9ac25829-0152-426b-91ef-492d799bece9"


class PartitionMode(str, Enum):
    SHARED = "shared"
    PER_BATCH = "per_batch"
    PER_RECORD = "per_record"


class Settings(BaseSettings):
    # Cosmos DB account
    cosmos_url: Optional[str] = Field(None, alias="COSMOS_URL")
    cosmos_key: Optional[str] = Field(None, alias="COSMOS_KEY")
    database_name: Optional[str] = Field(None, alias="DATABASE_NAME")
    container_name: str = Field("demo", alias="CONTAINER_NAME")
    partition_key_path: str = Field("/account", alias="PARTITION_KEY_PATH")
    consistency_level: str = Field("Eventual", alias="CONSISTENCY_LEVEL")
    throughput: int = Field(10_000, alias="THROUGHPUT", ge=400)

    # Benchmark shape
    record_quantity: int = Field(5_000, alias="RECORD_QUANTITY", gt=0)
    batch_size: int = Field(100, alias="BATCH_SIZE", gt=0)
    max_batch_size: int = Field(100, alias="MAX_BATCH_SIZE", gt=0)
    concurrency: int = Field(10, alias="CONCURRENCY", gt=0)
    buffer_size: Optional[int] = Field(None, alias="BUFFER_SIZE", gt=0)
    partition_mode: PartitionMode = Field(PartitionMode.SHARED, alias="PARTITION_MODE")
    partition_key: str = Field(DEFAULT_PARTITION_KEY, alias="PARTITION_KEY")
    random_seed: Optional[int] = Field(None, alias="RANDOM_SEED")

    # Lifecycle
    check_database: bool = Field(True, alias="CHECK_DATABASE")
    create_container: bool = Field(True, alias="CREATE_CONTAINER")
    pre_clean: bool = Field(False, alias="PRE_CLEAN")
    verify_count: bool = Field(True, alias="VERIFY_COUNT")
    teardown: bool = Field(True, alias="TEARDOWN")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    results_dir: str = Field("results", alias="RESULTS_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("partition_key_path")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("partition key path must start with '/'")
        return value

    @field_validator("buffer_size", "random_seed", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def validate_for_run(self, dry_run: bool = False) -> None:
        """
        Cross-field checks that depend on how the run will be executed.

        Raises
        ------
        ConfigurationError
            If credentials are missing for a real run, or the partition mode
            cannot produce single-key batches with the configured batch size.
        """
        if not dry_run:
            missing = [
                env
                for env, value in (
                    ("COSMOS_URL", self.cosmos_url),
                    ("COSMOS_KEY", self.cosmos_key),
                    ("DATABASE_NAME", self.database_name),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    f"Missing required configuration: {', '.join(missing)}"
                )
        if self.partition_mode is PartitionMode.PER_RECORD and self.batch_size != 1:
            raise ConfigurationError(
                "partition_mode=per_record gives every record its own key; "
                f"batch_size must be 1 (got {self.batch_size})"
            )

    def masked_key(self) -> str:
        if not self.cosmos_key:
            return "<unset>"
        if len(self.cosmos_key) <= 8:
            return "****"
        return f"{self.cosmos_key[:4]}...{self.cosmos_key[-4:]}"


def load_settings(**overrides: Any) -> Settings:
    """
    Build a fresh Settings instance, applying non-None overrides by field name.

    Raises
    ------
    ConfigurationError
        If any value is missing or out of range.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return load_settings()


__all__ = ["DEFAULT_PARTITION_KEY", "PartitionMode", "Settings", "get_settings", "load_settings"]
