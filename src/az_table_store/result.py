"""StoreResult: the outcome of a single write-style table operation."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .exceptions import BackendError, ConflictError, EntityNotFoundError


class ErrorKind(enum.Enum):
    CONFLICT  = "conflict"
    NOT_FOUND = "not_found"
    BACKEND   = "backend"


_ERRORS = {
    ErrorKind.CONFLICT:  ConflictError,
    ErrorKind.NOT_FOUND: EntityNotFoundError,
    ErrorKind.BACKEND:   BackendError,
}


@dataclass(frozen=True)
class StoreResult:
    """Immutable result of ``insert``, ``delete`` and friends.

    Attributes:
        ok:      ``True`` if the backend accepted the operation.
        kind:    What went wrong, ``None`` on success.
        message: Backend message on failure.
    """

    ok: bool
    kind: ErrorKind | None = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @staticmethod
    def success() -> StoreResult:
        return StoreResult(ok=True)

    @staticmethod
    def failure(kind: ErrorKind, message: str) -> StoreResult:
        return StoreResult(ok=False, kind=kind, message=message)

    def raise_for_error(self) -> StoreResult:
        if not self.ok:
            raise _ERRORS[self.kind](self.message)
        return self
