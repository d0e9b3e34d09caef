from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from hostellink.db.session import Base

DEPOSIT_RELEASE = "deposit_release"
WITHDRAWAL = "withdrawal"

class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wallet_id: Mapped[str] = mapped_column(String(36), ForeignKey("wallets.id", ondelete="CASCADE"), index=True)
    type: Mapped[str] = mapped_column(String(30))  # deposit_release, withdrawal
    amount: Mapped[int] = mapped_column(Integer)  # signed: releases positive, withdrawals negative
    description: Mapped[str | None] = mapped_column(String(300), nullable=True)
    booking_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("bookings.id"), unique=True, nullable=True)  # one release per booking
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
