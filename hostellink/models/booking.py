from sqlalchemy import String, Integer, DateTime, Text, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from hostellink.db.session import Base

PENDING = "pending"
HELD_IN_ESCROW = "held_in_escrow"
RELEASED_TO_LANDLORD = "released_to_landlord"
REFUNDED_TO_STUDENT = "refunded_to_student"
UNDER_REVIEW = "under_review"

ESCROW_STATUSES = (PENDING, HELD_IN_ESCROW, RELEASED_TO_LANDLORD, REFUNDED_TO_STUDENT, UNDER_REVIEW)
TERMINAL_STATUSES = (RELEASED_TO_LANDLORD, REFUNDED_TO_STUDENT)
# Bookings in these states hold the room; the partial index below allows one per room.
ACTIVE_STATUSES = (HELD_IN_ESCROW, UNDER_REVIEW)

ACTIVE_ROOM_INDEX = "uq_bookings_active_room"
_ACTIVE_WHERE = text("escrow_status IN ('held_in_escrow', 'under_review')")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            ACTIVE_ROOM_INDEX, "room_id", unique=True,
            postgresql_where=_ACTIVE_WHERE, sqlite_where=_ACTIVE_WHERE,
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), index=True)
    hostel_id: Mapped[str] = mapped_column(String(36), ForeignKey("hostels.id"), index=True)
    room_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("rooms.id"), nullable=True, index=True)  # null for legacy whole-hostel bookings

    deposit_amount: Mapped[int] = mapped_column(Integer)
    platform_fee: Mapped[int] = mapped_column(Integer, default=50)
    payment_amount: Mapped[int] = mapped_column(Integer)
    total_paid: Mapped[int] = mapped_column(Integer)  # deposit_amount + platform_fee, never updated

    payment_status: Mapped[str] = mapped_column(String(20), default="completed")  # completed, refunded
    escrow_status: Mapped[str] = mapped_column(String(30), default=HELD_IN_ESCROW, index=True)
    mpesa_transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    booked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    dispute_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
