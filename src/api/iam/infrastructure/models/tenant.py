"""SQLAlchemy ORM model for the tenants table.

Tenants are the top-level isolation boundary. The tenants table is the
root of the ownership tree and is therefore not itself tenant-scoped.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from iam.domain.value_objects import SubscriptionTier, TenantStatus
from infrastructure.database.models import Base, TimestampMixin


class TenantModel(Base, TimestampMixin):
    """ORM model for tenants table.

    Note: ``code`` and ``domain`` are globally unique. Tenants are suspended
    or deactivated through ``status``, never deleted.
    """

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TenantStatus.ACTIVE.value
    )
    subscription_tier: Mapped[str] = mapped_column(
        String(16), nullable=False, default=SubscriptionTier.STANDARD.value
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<TenantModel(id={self.id}, code={self.code})>"
