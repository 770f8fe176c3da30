"""
records.py
----------
Typed records addressed by a (PartitionKey, RowKey) pair.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Protocol, TypeVar, runtime_checkable

from azure.data.tables import EdmType, EntityProperty

# Properties the service adds to every entity; never part of a payload.
_METADATA_KEYS = ("PartitionKey", "RowKey", "Timestamp", "etag")

# Plain ints are sent as Edm.Int32; anything wider must be tagged Int64.
_INT32_MIN, _INT32_MAX = -2**31, 2**31 - 1


@runtime_checkable
class Keyed(Protocol):
    """Anything carrying the two-part table key."""

    partition_key: str
    row_key: str


@dataclass
class TableRecord:
    """Base class for records stored in a table.

    Subclasses add payload fields::

        @dataclass
        class Reading(TableRecord):
            value: str = ""
    """

    partition_key: str
    row_key: str

    etag:      str | None      = field(default=None, init=False, compare=False, repr=False)
    timestamp: datetime | None = field(default=None, init=False, compare=False, repr=False)

    @classmethod
    def payload_fields(cls) -> list[str]:
        return [f.name for f in fields(cls) if f.init and f.name not in ("partition_key", "row_key")]

    def key(self) -> tuple[str, str]:
        return self.partition_key, self.row_key

    def to_entity(self) -> dict[str, Any]:
        _check_keys(self)
        entity = {"PartitionKey": self.partition_key, "RowKey": self.row_key}
        for name in self.payload_fields():
            entity[name] = _to_property(getattr(self, name))
        return entity

    @classmethod
    def from_entity(cls, entity) -> "TableRecord":
        """Builds a record, dropping service metadata and undeclared properties."""
        known = set(cls.payload_fields())
        payload = {k: _from_property(v) for k, v in entity.items() if k in known and k not in _METADATA_KEYS}
        record = cls(partition_key=entity["PartitionKey"], row_key=entity["RowKey"], **payload)

        metadata = getattr(entity, "metadata", None) or {}
        record.etag      = metadata.get("etag")
        record.timestamp = metadata.get("timestamp")
        return record


R = TypeVar("R", bound=TableRecord)


def _check_keys(record: Keyed) -> None:
    for name in ("partition_key", "row_key"):
        value = getattr(record, name)
        if not isinstance(value, str):
            raise TypeError(f"{name} must be a str, got {type(value).__name__}")


def _to_property(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool) and not _INT32_MIN <= value <= _INT32_MAX:
        return EntityProperty(value, EdmType.INT64)
    return value


def _from_property(value: Any) -> Any:
    return value.value if isinstance(value, EntityProperty) else value
