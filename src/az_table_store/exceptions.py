"""Custom exceptions for the az_table_store package."""


class TableStoreError(Exception):
    """Base exception for all table store errors."""


class TableConnectionError(TableStoreError):
    """Raised when the connection string cannot be resolved or the table provisioned."""

    def __init__(self, table_name: str, detail: str = "") -> None:
        self.table_name = table_name
        msg = f"Cannot open table '{table_name}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ConflictError(TableStoreError):
    """An entity with the same key already exists, or changed underneath us."""


class EntityNotFoundError(TableStoreError):
    """The operation required an existing entity."""


class BackendError(TableStoreError):
    """Any other failure reported by the storage service."""


class BatchSizeError(TableStoreError, ValueError):
    """Raised before submitting a batch larger than the service allows."""

    def __init__(self, size: int, limit: int) -> None:
        self.size  = size
        self.limit = limit
        super().__init__(f"Batch of {size} entities exceeds the limit of {limit}.")


class BatchPartitionError(TableStoreError, ValueError):
    """Raised before submitting a batch that spans more than one partition."""

    def __init__(self, partition_keys: set[str]) -> None:
        self.partition_keys = partition_keys
        super().__init__(f"Batch spans multiple partitions: {sorted(partition_keys)}")
