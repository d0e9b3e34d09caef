from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from hostellink.db.session import Base

class Receipt(Base):
    __tablename__ = "receipts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), unique=True, index=True)
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), index=True)
    receipt_number: Mapped[str] = mapped_column(String(40), unique=True, index=True)  # HL-<base36 ms>-<4 chars>

    deposit_amount: Mapped[int] = mapped_column(Integer)
    platform_fee: Mapped[int] = mapped_column(Integer)
    total_paid: Mapped[int] = mapped_column(Integer)
    payment_method: Mapped[str] = mapped_column(String(20), default="mpesa")
    status: Mapped[str] = mapped_column(String(20), default="deposit_held")  # deposit_held, released, refunded, disputed

    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
