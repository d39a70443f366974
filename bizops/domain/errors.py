"""Error taxonomy for the data layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    STORAGE = "storage"


class BizOpsError(Exception):
    """Base class for data-layer exceptions."""

    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BizOpsError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(BizOpsError):
    """Raised when a write collides with existing state (unique keys, dependants)."""

    kind = ErrorKind.CONFLICT


class StorageError(BizOpsError):
    """Raised when the underlying store fails."""

    kind = ErrorKind.STORAGE


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationError(BizOpsError):
    kind = ErrorKind.VALIDATION

    def __init__(self, errors: list[FieldError], entity: Optional[str] = None):
        self.errors = list(errors)
        self.entity = entity
        prefix = f"Invalid {entity} payload" if entity else "Invalid payload"
        super().__init__(f"{prefix}: " + "; ".join(str(e) for e in self.errors))

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


@dataclass(frozen=True)
class OperationError:
    """Structured detail of a failure that was converted to None/False for the caller."""

    kind: ErrorKind
    message: str
    entity: Optional[str] = None
    entity_id: Optional[str] = None
    details: dict = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: Exception, *, entity: str | None = None, entity_id: str | None = None) -> "OperationError":
        kind = exc.kind if isinstance(exc, BizOpsError) else ErrorKind.STORAGE
        return cls(kind=kind, message=str(exc), entity=entity, entity_id=entity_id)
