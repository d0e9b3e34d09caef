from sqlalchemy import String, Integer, DateTime, Boolean, Text, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from hostellink.db.session import Base

class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    hostel_id: Mapped[str] = mapped_column(String(36), ForeignKey("hostels.id", ondelete="CASCADE"), index=True)

    room_number: Mapped[str] = mapped_column(String(30))
    price_per_month: Mapped[int] = mapped_column(Integer)
    deposit_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)  # falls back to price_per_month
    # Mutex for reservations: only flipped through conditional updates in room_service
    is_vacant: Mapped[bool] = mapped_column(Boolean, default=True)
    images: Mapped[list] = mapped_column(JSON, default=list)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    @property
    def effective_deposit(self) -> int:
        return int(self.deposit_amount or self.price_per_month)
