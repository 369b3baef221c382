"""AdminUser ORM model: the backoffice principal whose permissions are resolved."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.domain.enums import PrincipalStatus
from backoffice.infrastructure.persistence.database import Base
from backoffice.infrastructure.persistence.models.mixins import TimestampMixin, UuidMixin


class AdminUser(UuidMixin, TimestampMixin, Base):
    """Admin user. Table: admin_user. role holds the role name."""

    __tablename__ = "admin_user"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PrincipalStatus.PENDING.value
    )
