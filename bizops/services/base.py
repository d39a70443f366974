"""Shared plumbing for the entity managers."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from bizops.db.session import Database
from bizops.domain.errors import (
    BizOpsError,
    ErrorKind,
    FieldError,
    OperationError,
    ValidationError,
)

T = TypeVar("T")


def enum_value(enum_cls: type[Enum], value: Any, field: str) -> str:
    """Return the stored string for ``value`` or raise ValidationError."""
    try:
        return enum_cls(value.value if isinstance(value, Enum) else str(value).upper()).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError([FieldError(field, f"Input should be one of: {allowed}")]) from None


class BaseManager:
    """
    Holds the injected Database and the detail of the last swallowed failure.

    Update/delete style operations return None/False to the caller; the
    reason is kept in ``last_error`` (kind, message, entity, id).
    """

    entity_name = "entity"

    def __init__(self, database: Database) -> None:
        self.database = database
        self.last_error: Optional[OperationError] = None
        self.logger = logging.getLogger(type(self).__module__)

    def _reset(self) -> None:
        self.last_error = None

    def _fail(self, kind: ErrorKind, message: str, entity_id: Optional[str] = None, **details) -> None:
        self.last_error = OperationError(
            kind=kind,
            message=message,
            entity=self.entity_name,
            entity_id=entity_id,
            details=details,
        )

    def _not_found(self, entity_id: Optional[str], what: Optional[str] = None) -> None:
        name = what or self.entity_name
        self.logger.info("%s %s not found", name.capitalize(), entity_id)
        self._fail(ErrorKind.NOT_FOUND, f"{name} {entity_id} not found", entity_id)

    def _guard(self, action: str, entity_id: Optional[str], fn: Callable[[], T], default: T) -> T:
        """Run a storage call, converting data-layer failures into ``default``."""
        try:
            return fn()
        except ValidationError:
            raise
        except BizOpsError as exc:
            self.logger.exception("Failed to %s %s %s", action, self.entity_name, entity_id)
            self.last_error = OperationError.from_exception(exc, entity=self.entity_name, entity_id=entity_id)
            return default
