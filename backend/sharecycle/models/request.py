import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharecycle.db.base import Base


class DonationRequest(Base):
    __tablename__ = "requests"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled', 'delivered')",
            name="ck_requests_status",
        ),
        CheckConstraint("requested_quantity >= 1", name="ck_requests_requested_quantity"),
        CheckConstraint(
            "approved_quantity IS NULL OR "
            "(approved_quantity >= 1 AND approved_quantity <= requested_quantity)",
            name="ck_requests_approved_quantity",
        ),
        CheckConstraint("requester_id <> donor_id", name="ck_requests_not_own_donation"),
        # One pending request per (donation, requester); closes the
        # check-then-insert race in create_request.
        Index(
            "uq_requests_one_pending_per_requester",
            "donation_id",
            "requester_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_requests_donation_status", "donation_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    donation_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("donations.id"), nullable=False)
    # Snapshot of the donation owner taken at creation time.
    donor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    approved_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    pickup_scheduled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    pickup_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Loaded explicitly (selectinload) by the listing reads.
    donation: Mapped["Donation"] = relationship(lazy="raise")  # noqa: F821
    donor: Mapped["User"] = relationship(foreign_keys=[donor_id], lazy="raise")  # noqa: F821
    requester: Mapped["User"] = relationship(  # noqa: F821
        foreign_keys=[requester_id], lazy="raise"
    )
