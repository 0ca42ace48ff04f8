"""SQLAlchemy ORM model for the businesses table.

Businesses are the tenants of the system: every business record is
scoped to one. Rows are never deleted; ``is_active`` marks soft deletion.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base

DEFAULT_BUSINESS_INDEX = "uq_businesses_owner_default"


class BusinessModel(Base):
    """ORM model for businesses table.

    Note: at most one active default (auto-provisioned) business exists
    per owner. The partial unique index enforces it so concurrent
    provisioning cannot create two.
    """

    __tablename__ = "businesses"
    __table_args__ = (
        Index("ix_businesses_owner_id_created_at", "owner_id", "created_at"),
        Index(
            DEFAULT_BUSINESS_INDEX,
            "owner_id",
            unique=True,
            postgresql_where=text("is_default AND is_active"),
        ),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    website: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    gst_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    registration_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    pan_number: Mapped[str | None] = mapped_column(String(16), nullable=True)
    currency: Mapped[str] = mapped_column(
        String(8), nullable=False, server_default="INR"
    )
    fiscal_year: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default="april-march"
    )
    logo_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<BusinessModel(id={self.id}, owner_id={self.owner_id}, name={self.name})>"
