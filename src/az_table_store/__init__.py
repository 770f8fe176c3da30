"""
az_table_store
--------------
A generic, typed Azure Table Storage client.
"""

__version__ = "1.0.0"

from .az_table_store import (
    MAX_BATCH_SIZE,
    TableStore,
    configure,
    insert,
    insert_or_replace,
    batch_insert,
    get_all,
    get_range,
    get_single,
    delete,
    delete_table,
)
from .exceptions import (
    TableStoreError,
    TableConnectionError,
    ConflictError,
    EntityNotFoundError,
    BackendError,
    BatchSizeError,
    BatchPartitionError,
)
from .records import Keyed, TableRecord
from .result import ErrorKind, StoreResult

__all__ = [
    "__version__",
    "MAX_BATCH_SIZE",
    "TableStore",
    "TableRecord",
    "Keyed",
    "StoreResult",
    "ErrorKind",
    "TableStoreError",
    "TableConnectionError",
    "ConflictError",
    "EntityNotFoundError",
    "BackendError",
    "BatchSizeError",
    "BatchPartitionError",
    "configure",
    "insert",
    "insert_or_replace",
    "batch_insert",
    "get_all",
    "get_range",
    "get_single",
    "delete",
    "delete_table",
]
