"""Shared plumbing for the entity services.

Every service receives its collaborators explicitly: the request's session,
a clock used for all timestamps, and an optional request deadline. Writes run
inside :meth:`BaseService.transaction`, which commits once and translates
persistence failures into domain errors.
"""
import enum
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import CancelledError, ConflictError, DomainError, InternalError, ValidationError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
E = TypeVar("E", bound=enum.Enum)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Deadline:
    """Request-scoped deadline on a monotonic clock."""

    def __init__(self, expires_at: Optional[float] = None, monotonic: Callable[[], float] = time.monotonic):
        self.expires_at = expires_at
        self._monotonic = monotonic

    @classmethod
    def after(cls, seconds: float, monotonic: Callable[[], float] = time.monotonic) -> "Deadline":
        return cls(monotonic() + seconds, monotonic)

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def expired(self) -> bool:
        return self.expires_at is not None and self._monotonic() >= self.expires_at

    def check(self, operation: str) -> None:
        if self.expired():
            raise CancelledError(f"Request deadline exceeded during {operation}")


def coerce_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """Accept an enum member or its string token."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'; expected one of: {allowed}", field=field)


class BaseService:
    """Base class wiring session, clock and deadline."""

    entity_name = "entity"
    # Patchable fields, and those among them that may not be cleared
    updatable_fields: frozenset = frozenset()
    required_fields: frozenset = frozenset()
    order_fields: Mapping[str, Any] = {}

    def __init__(self, db: Session, clock: Clock = utcnow, deadline: Optional[Deadline] = None):
        self.db = db
        self.clock = clock
        self.deadline = deadline or Deadline.never()

    @contextmanager
    def transaction(self, operation: str) -> Iterator[None]:
        """Run one atomic write; commit on success, roll back on any failure."""
        self.deadline.check(operation)
        try:
            yield
            self.db.flush()
            # Last chance to abort before the change becomes visible
            self.deadline.check(operation)
            self.db.commit()
        except DomainError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Integrity error during %s: %s", operation, exc.orig)
            raise ConflictError(f"Cannot {operation}: it conflicts with existing data") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Database error during %s", operation, exc_info=True)
            raise InternalError(f"Cannot {operation}: storage failure") from exc

    @contextmanager
    def reading(self, operation: str) -> Iterator[None]:
        self.deadline.check(operation)
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("Database error during %s", operation, exc_info=True)
            raise InternalError(f"Cannot {operation}: storage failure") from exc

    def _check_changes(self, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - self.updatable_fields
        if unknown:
            raise ValidationError(
                f"Cannot update {self.entity_name} field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        for field in self.required_fields & set(changes):
            if changes[field] is None:
                raise ValidationError(f"{field} cannot be null", field=field)

    def _ordering(self, order_by: Optional[str], descending: bool, default: str) -> Iterable:
        key = order_by or default
        if key not in self.order_fields:
            allowed = ", ".join(sorted(self.order_fields))
            raise ValidationError(f"Cannot order {self.entity_name}s by '{key}'; expected one of: {allowed}", field="order_by")
        column = self.order_fields[key]
        primary = column.desc() if descending else column.asc()
        return (primary, self.order_fields["id"].asc())
