"""Shared test fixtures."""

from types import SimpleNamespace

import pytest

from az_table_store import TableStore
from az_table_store import az_table_store as module
from tests.fake.fake_tables import FakeAsyncTableClient, FakeTableBackend, FakeTableServiceClient
from tests.helpers import CONNECTION_STRING, PARTITION, TABLE_NAME, TestEntity


@pytest.fixture
def backend(monkeypatch) -> FakeTableBackend:
    backend = FakeTableBackend()

    def service_from_connection_string(conn_str, **kwargs):
        if "AccountName" not in conn_str:
            raise ValueError("Connection string missing required connection details.")
        return FakeTableServiceClient(backend)

    def table_from_connection_string(conn_str, table_name, **kwargs):
        return FakeAsyncTableClient(backend, table_name)

    monkeypatch.setattr(module, "TableServiceClient", SimpleNamespace(from_connection_string=service_from_connection_string))
    monkeypatch.setattr(module, "AsyncTableClient", SimpleNamespace(from_connection_string=table_from_connection_string))
    return backend


@pytest.fixture
def store(backend) -> TableStore[TestEntity]:
    return TableStore(TestEntity, CONNECTION_STRING, TABLE_NAME, PARTITION)


@pytest.fixture
def unscoped_store(backend) -> TableStore[TestEntity]:
    return TableStore(TestEntity, CONNECTION_STRING, TABLE_NAME)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("AZURE_STORAGE_CONNECTION_STRING", "TABLE_STORE_NAME", "TABLE_STORE_PARTITION_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(module, "_store", None)
