import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from hostellink.db.session import SessionLocal
from hostellink.core.security import hash_password
from hostellink.models.user import User
from hostellink.models.user_role import UserRole
from hostellink.models.hostel import Hostel
from hostellink.models.room import Room
from hostellink.models.verified_plot import VerifiedPlot
from hostellink.services.plot_service import normalize_plot_number

PLOTS = [
    ("LR 209/1123", "Juja, Gate B", "Wanjiru Holdings"),
    ("LR 209/1187", "Juja, Highpoint", "K. Otieno"),
    ("KIAMBU/JUJA/4471", "Juja, Gachororo", "Gachororo Estates"),
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str, phone: str | None = None) -> User:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=name,
        phone=phone,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.add(UserRole(id=str(uuid.uuid4()), user_id=u.id, role=role))
    db.commit()
    return u


def ensure_plots(db: Session):
    for plot_number, location, owner in PLOTS:
        pn = normalize_plot_number(plot_number)
        if db.query(VerifiedPlot).filter(VerifiedPlot.plot_number == pn).first():
            continue
        db.add(VerifiedPlot(id=str(uuid.uuid4()), plot_number=pn, location=location, owner_name=owner))
    db.commit()


def ensure_demo_hostel(db: Session, landlord: User):
    if db.query(Hostel).filter(Hostel.landlord_id == landlord.id).first():
        return
    h = Hostel(
        id=str(uuid.uuid4()),
        landlord_id=landlord.id,
        name="Sunrise Hostel",
        location="Juja, Gate B",
        description="Self-contained rooms five minutes from the main gate.",
        distance_from_gate=0.4,
        plot_number=normalize_plot_number(PLOTS[0][0]),
        rent_per_month=5000,
        total_rooms=3,
        images=[],
        is_verified=True,
    )
    db.add(h)
    for n in ("A1", "A2", "B1"):
        db.add(Room(
            id=str(uuid.uuid4()),
            hostel_id=h.id,
            room_number=n,
            price_per_month=5000,
            deposit_amount=5000,
            is_vacant=True,
            images=[],
        ))
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM profiles LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            print("[seed] profiles table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@hostellink.local", "admin12345", "admin", "Admin")
        landlord = ensure_user(db, "landlord@hostellink.local", "landlord12345", "landlord", "Demo Landlord", "0712000001")
        ensure_user(db, "student@hostellink.local", "student12345", "student", "Demo Student", "0712000002")
        ensure_plots(db)
        ensure_demo_hostel(db, landlord)
    finally:
        db.close()


if __name__ == "__main__":
    run()
