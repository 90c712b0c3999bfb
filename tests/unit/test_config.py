from __future__ import annotations

import pytest

from write_bench.config import DEFAULT_PARTITION_KEY, PartitionMode, Settings, get_settings, load_settings
from write_bench.errors import ConfigurationError


def test_settings_defaults():
    settings = Settings(_env_file=None)

    assert settings.container_name == "demo"
    assert settings.partition_key_path == "/account"
    assert settings.record_quantity == 5000
    assert settings.batch_size == 100
    assert settings.max_batch_size == 100
    assert settings.throughput == 10_000
    assert settings.buffer_size is None
    assert settings.partition_mode is PartitionMode.SHARED
    assert settings.partition_key == DEFAULT_PARTITION_KEY
    assert settings.teardown is True


def test_environment_variables_are_read_by_alias(monkeypatch):
    monkeypatch.setenv("COSMOS_URL", "https://acct.documents.azure.com:443/")
    monkeypatch.setenv("RECORD_QUANTITY", "2000")
    monkeypatch.setenv("BUFFER_SIZE", "")
    monkeypatch.setenv("PARTITION_MODE", "per_batch")

    settings = get_settings()

    assert settings.cosmos_url == "https://acct.documents.azure.com:443/"
    assert settings.record_quantity == 2000
    assert settings.buffer_size is None
    assert settings.partition_mode is PartitionMode.PER_BATCH


def test_load_settings_ignores_none_overrides(monkeypatch):
    monkeypatch.setenv("BATCH_SIZE", "50")

    settings = load_settings(batch_size=None, concurrency=3)

    assert settings.batch_size == 50
    assert settings.concurrency == 3


@pytest.mark.parametrize(
    "overrides",
    [
        {"batch_size": 0},
        {"concurrency": -1},
        {"record_quantity": 0},
        {"throughput": 100},
        {"partition_key_path": "account"},
        {"partition_mode": "sideways"},
    ],
)
def test_load_settings_converts_validation_errors(overrides):
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_settings(**overrides)


def test_validate_for_run_requires_credentials_unless_dry_run():
    settings = Settings(_env_file=None)

    with pytest.raises(ConfigurationError, match="COSMOS_URL, COSMOS_KEY, DATABASE_NAME"):
        settings.validate_for_run()
    settings.validate_for_run(dry_run=True)


def test_per_record_mode_requires_single_record_batches(make_settings):
    with pytest.raises(ConfigurationError, match="batch_size must be 1"):
        make_settings(partition_mode=PartitionMode.PER_RECORD).validate_for_run()

    make_settings(partition_mode=PartitionMode.PER_RECORD, batch_size=1).validate_for_run()


def test_masked_key_hides_the_secret(make_settings):
    masked = make_settings(cosmos_key="abcdefghijklmnop").masked_key()

    assert masked == "abcd...mnop"
    assert make_settings(cosmos_key=None).masked_key() == "<unset>"
