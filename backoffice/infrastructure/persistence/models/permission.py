"""RolePermission ORM model: the permission set a role holds on one resource."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.infrastructure.persistence.database import Base, JSONType
from backoffice.infrastructure.persistence.models.mixins import TimestampMixin, UuidMixin
from backoffice.infrastructure.persistence.models.role import Role


class RolePermission(UuidMixin, TimestampMixin, Base):
    """Role grant. Table: role_permission. Unique (role_id, resource).

    permissions is a sorted JSON list of Permission values.
    """

    __tablename__ = "role_permission"

    role_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("role.id", ondelete="CASCADE"), nullable=False, index=True
    )
    resource: Mapped[str] = mapped_column(String(64), nullable=False)
    permissions: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    role: Mapped[Role] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("role_id", "resource", name="uq_role_permission_role_resource"),
    )
