"""SQLAlchemy mixins for common model patterns.

Provides: UuidMixin and TimestampMixin.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from backoffice.shared.utils.datetime import utc_now
from backoffice.shared.utils.generators import generate_uuid


class UuidMixin:
    """Mixin for models using a UUID string primary key."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String(36), primary_key=True, default=generate_uuid)


class TimestampMixin:
    """Mixin for created_at and updated_at (timezone-aware, set in Python)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
        )
