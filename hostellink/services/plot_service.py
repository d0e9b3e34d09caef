from sqlalchemy.orm import Session

from hostellink.models.verified_plot import VerifiedPlot


def normalize_plot_number(plot_number: str) -> str:
    return " ".join((plot_number or "").upper().split())


def is_plot_verified(db: Session, plot_number: str) -> bool:
    """Plot registry lookup used when a landlord lists a hostel."""
    pn = normalize_plot_number(plot_number)
    if not pn:
        return False
    return db.query(VerifiedPlot.id).filter(VerifiedPlot.plot_number == pn).first() is not None
