"""Shared column mixins for the ORM models."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.exceptions import ValidationFailure
from taskboard.validation import MESSAGES


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """createdAt / updatedAt, maintained by the ORM and never serialized."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )


def enforce(field: str, predicate, value):
    """Run a validation predicate for an ORM `@validates` hook."""
    if not predicate(value):
        raise ValidationFailure(message=MESSAGES[field], field=field)
    return value
