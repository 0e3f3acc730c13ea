import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharecycle.db.base import Base


class Donation(Base):
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('available', 'reserved', 'delivered', 'cancelled')",
            name="ck_donations_status",
        ),
        CheckConstraint(
            "category IN ('food', 'clothing', 'electronics', 'furniture', 'books', "
            "'toys', 'household_items', 'medicine', 'hygiene_products', 'other')",
            name="ck_donations_category",
        ),
        CheckConstraint(
            "condition IN ('new', 'used_good', 'used_fair', 'needs_repair')",
            name="ck_donations_condition",
        ),
        CheckConstraint("quantity > 0", name="ck_donations_quantity_positive"),
        Index("ix_donations_active_status_created", "is_active", "status", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    donor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    donor: Mapped["User"] = relationship(lazy="raise")  # noqa: F821
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    condition: Mapped[str] = mapped_column(String(20), nullable=False)
    images: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list
    )
    pickup_address: Mapped[str] = mapped_column(String(300), nullable=False)
    pickup_city: Mapped[str] = mapped_column(String(100), nullable=False)
    pickup_state: Mapped[str] = mapped_column(String(50), nullable=False)
    pickup_zip_code: Mapped[str] = mapped_column(String(9), nullable=False)
    pickup_instructions: Mapped[str | None] = mapped_column(String(500), nullable=True)
    pickup_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    pickup_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="available")
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    @property
    def has_coordinates(self) -> bool:
        return self.pickup_latitude is not None and self.pickup_longitude is not None
