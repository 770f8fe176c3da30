"""
az_table_store.py
-----------------
Generic, typed Azure Table Storage client.
"""

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic

from azure.core import MatchConditions
from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from azure.data.tables import TableServiceClient, UpdateMode
from azure.data.tables.aio import TableClient as AsyncTableClient

from .exceptions import BackendError, BatchPartitionError, BatchSizeError, TableConnectionError
from .records import Keyed, R
from .result import ErrorKind, StoreResult

logger = logging.getLogger(__name__)

# Service limit for a single entity group transaction.
MAX_BATCH_SIZE = 100

_UNSET: Any = object()

# ------------------------------------------------------------------
# Environment Helper
# ------------------------------------------------------------------

def _get_env(name: str, default: str | None = None, required: bool = True) -> str | None:
    """Helper to fetch environment variables or raise an error."""
    value = os.environ.get(name)
    if not value:
        if default is not None or not required:
            return default
        raise EnvironmentError(f"Required environment variable '{name}' is not set.")
    return value

# ------------------------------------------------------------------
# Internal Helpers
# ------------------------------------------------------------------

def _scope_filter(partition_key: str | None, upper_row_key: str | None = None) -> tuple[str | None, dict]:
    """Builds a parameterized OData filter for a partition/row-key scope."""
    clauses, params = [], {}
    if partition_key is not None:
        clauses.append("PartitionKey eq @pk")
        params["pk"] = partition_key
    if upper_row_key is not None:
        clauses.append("RowKey lt @rk")
        params["rk"] = upper_row_key
    return (" and ".join(clauses) or None), params

def _error_kind(error: AzureError) -> ErrorKind:
    if isinstance(error, (ResourceExistsError, ResourceModifiedError)):
        return ErrorKind.CONFLICT
    if getattr(error, "error_code", None) == "EntityAlreadyExists":
        return ErrorKind.CONFLICT
    return ErrorKind.BACKEND

def _failure(operation: str, error: AzureError) -> StoreResult:
    kind = _error_kind(error)
    logger.warning("%s failed (%s): %s", operation, kind.value, error)
    return StoreResult.failure(kind, str(error))


class _Scan(Generic[R]):
    """A lazy query that is re-issued every time it is iterated."""

    def __init__(self, run: Callable[[], Iterable], convert: Callable[[Any], R]) -> None:
        self._run     = run
        self._convert = convert

    def __iter__(self) -> Iterator[R]:
        try:
            for entity in self._run():
                yield self._convert(entity)
        except AzureError as e:
            raise BackendError(str(e)) from e

# ------------------------------------------------------------------
# Public Client Class
# ------------------------------------------------------------------

class TableStore(Generic[R]):
    def __init__(self,
        record_type:       type[R],
        connection_string: str | None = None,
        table_name:        str | None = None,
        partition_key:     str | None = None,
    ) -> None:
        # Resolve Infrastructure
        connection_string = connection_string or _get_env("AZURE_STORAGE_CONNECTION_STRING")
        table_name        = table_name        or _get_env("TABLE_STORE_NAME")
        if partition_key is None:
            partition_key = _get_env("TABLE_STORE_PARTITION_KEY", required=False)

        self._record_type       = record_type
        self._connection_string = connection_string
        self.table_name         = table_name
        self.partition_key      = partition_key

        try:
            self._service = TableServiceClient.from_connection_string(connection_string)
        except ValueError as e:
            raise TableConnectionError(table_name, str(e)) from e
        try:
            self.table = self._service.create_table_if_not_exists(table_name)
        except AzureError as e:
            self._service.close()
            raise TableConnectionError(table_name, str(e)) from e
        logger.info("Table '%s' ready", table_name)

    def __enter__(self) -> "TableStore[R]":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.table.close()
        self._service.close()

    # -- writes --------------------------------------------------------

    def insert(self, record: R) -> StoreResult:
        """Adds a new entity. Fails with CONFLICT if the key is taken."""
        try:
            self.table.create_entity(record.to_entity())
        except AzureError as e:
            return _failure("insert", e)
        logger.debug("Inserted %s/%s", record.partition_key, record.row_key)
        return StoreResult.success()

    def insert_or_replace(self, record: R) -> StoreResult:
        """Writes the entity, replacing any stored payload under the same key."""
        try:
            self.table.upsert_entity(record.to_entity(), mode=UpdateMode.REPLACE)
        except AzureError as e:
            return _failure("insert_or_replace", e)
        logger.debug("Upserted %s/%s", record.partition_key, record.row_key)
        return StoreResult.success()

    def batch_insert(self, records: Iterable[R]) -> StoreResult:
        """Inserts up to ``MAX_BATCH_SIZE`` same-partition records atomically.

        Raises ``BatchSizeError`` or ``BatchPartitionError`` without touching
        the service when the batch could never be accepted.
        """
        records = list(records)
        if len(records) > MAX_BATCH_SIZE:
            raise BatchSizeError(len(records), MAX_BATCH_SIZE)
        if not records:
            return StoreResult.success()

        partitions = {r.partition_key for r in records}
        if len(partitions) > 1:
            raise BatchPartitionError(partitions)

        operations = [("create", r.to_entity()) for r in records]
        try:
            self.table.submit_transaction(operations)
        except AzureError as e:
            return _failure("batch_insert", e)
        logger.debug("Batch inserted %d entities into partition %s", len(records), partitions.pop())
        return StoreResult.success()

    def delete(self, template: Keyed) -> StoreResult:
        """Deletes the entity addressed by the template's keys.

        The delete is conditional on the etag seen by the lookup, so a record
        rewritten in between is reported as CONFLICT instead of being lost.
        """
        pk, rk = template.partition_key, template.row_key
        try:
            entity = self.table.get_entity(pk, rk)
        except ResourceNotFoundError:
            return StoreResult.failure(ErrorKind.NOT_FOUND, f"Entity {pk}/{rk} not found.")
        except AzureError as e:
            return _failure("delete", e)

        etag = (getattr(entity, "metadata", None) or {}).get("etag")
        kwargs = {"etag": etag, "match_condition": MatchConditions.IfNotModified} if etag else {}
        try:
            self.table.delete_entity(pk, rk, **kwargs)
        except AzureError as e:
            return _failure("delete", e)
        logger.debug("Deleted %s/%s", pk, rk)
        return StoreResult.success()

    def delete_table(self) -> StoreResult:
        """Drops the whole table. A table that is already gone is not an error.

        The service may refuse to recreate the same name for a while afterwards.
        """
        try:
            self._service.delete_table(self.table_name)
        except AzureError as e:
            return _failure("delete_table", e)
        logger.info("Table '%s' deleted", self.table_name)
        return StoreResult.success()

    # -- reads ---------------------------------------------------------

    def get_single(self, template: Keyed) -> R | None:
        """Point lookup; payload fields of the template are ignored."""
        try:
            entity = self.table.get_entity(template.partition_key, template.row_key)
        except ResourceNotFoundError:
            return None
        except AzureError as e:
            raise BackendError(str(e)) from e
        return self._record_type.from_entity(entity)

    def get_all(self, partition_key: str | None = _UNSET) -> Iterable[R]:
        """Every record in the partition scope; the whole table if there is none."""
        return self._scan(self._resolve_partition(partition_key))

    def get_range(self, upper_row_key: str, partition_key: str | None = _UNSET) -> Iterable[R]:
        """Records whose row key sorts strictly below ``upper_row_key``.

        Comparison is lexicographic: zero-pad numeric row keys.
        """
        return self._scan(self._resolve_partition(partition_key), upper_row_key)

    async def get_all_async(self,
        partition_key:    str | None = _UNSET,
        results_per_page: int | None = None,
    ) -> list[R]:
        """Drains every page of the segmented scan and returns all records."""
        query_filter, params = _scope_filter(self._resolve_partition(partition_key))
        records: list[R] = []
        try:
            async with AsyncTableClient.from_connection_string(self._connection_string, self.table_name) as client:
                if query_filter:
                    pager = client.query_entities(query_filter, parameters=params, results_per_page=results_per_page)
                else:
                    pager = client.list_entities(results_per_page=results_per_page)

                pages = pager.by_page()
                async for page in pages:
                    before = len(records)
                    async for entity in page:
                        records.append(self._record_type.from_entity(entity))
                    logger.debug("Fetched page of %d entities (more: %s)",
                                 len(records) - before, pages.continuation_token is not None)
        except AzureError as e:
            raise BackendError(str(e)) from e
        return records

    def _resolve_partition(self, partition_key: str | None) -> str | None:
        return self.partition_key if partition_key is _UNSET else partition_key

    def _scan(self, partition_key: str | None, upper_row_key: str | None = None) -> Iterable[R]:
        query_filter, params = _scope_filter(partition_key, upper_row_key)

        def run():
            logger.debug("Scanning '%s' where %s %s", self.table_name, query_filter, params)
            if query_filter is None:
                return self.table.list_entities()
            return self.table.query_entities(query_filter, parameters=params)

        return _Scan(run, self._record_type.from_entity)

# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------

_store: TableStore | None = None

def _get_store() -> TableStore:
    if _store is None:
        raise RuntimeError("Table store is not configured; call configure() first.")
    return _store

def configure(record_type, **kwargs) -> TableStore:
    global _store
    if _store is not None:
        raise RuntimeError("Table store already initialized.")
    _store = TableStore(record_type, **kwargs)
    return _store

def insert(record): return _get_store().insert(record)
def insert_or_replace(record): return _get_store().insert_or_replace(record)
def batch_insert(records): return _get_store().batch_insert(records)
def get_all(**kwargs): return _get_store().get_all(**kwargs)
def get_range(upper_row_key, **kwargs): return _get_store().get_range(upper_row_key, **kwargs)
def get_single(template): return _get_store().get_single(template)
def delete(template): return _get_store().delete(template)
def delete_table(): return _get_store().delete_table()
