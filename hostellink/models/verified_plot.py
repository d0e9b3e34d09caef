from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from hostellink.db.session import Base

class VerifiedPlot(Base):
    __tablename__ = "verified_plots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    plot_number: Mapped[str] = mapped_column(String(60), unique=True, index=True)
    location: Mapped[str] = mapped_column(String(200))
    owner_name: Mapped[str] = mapped_column(String(200))
    verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
