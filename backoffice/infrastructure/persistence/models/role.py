"""Role ORM model. Backoffice roles (SUPER_ADMIN, ADMIN, ... plus custom roles)."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.infrastructure.persistence.database import Base
from backoffice.infrastructure.persistence.models.mixins import TimestampMixin, UuidMixin


class Role(UuidMixin, TimestampMixin, Base):
    """Role. Table: role. Unique name; system roles cannot be deleted."""

    __tablename__ = "role"

    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
