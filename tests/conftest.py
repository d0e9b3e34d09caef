import os
import uuid

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker

from hostellink.core.identity import Identity, STUDENT, LANDLORD, ADMIN
from hostellink.core.security import hash_password, create_access_token
from hostellink.db.session import Base, make_engine
from hostellink.models.user import User
from hostellink.models.user_role import UserRole
from hostellink.models.hostel import Hostel
from hostellink.models.room import Room
from hostellink.models.verified_plot import VerifiedPlot
from hostellink.models.booking import Booking  # noqa: F401
from hostellink.models.receipt import Receipt  # noqa: F401
from hostellink.models.wallet import Wallet  # noqa: F401
from hostellink.models.wallet_transaction import WalletTransaction  # noqa: F401
from hostellink.models.audit_log import AuditLog  # noqa: F401
from hostellink.models.email_log import EmailLog  # noqa: F401
from hostellink.services import email_service


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'hostellink.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Captures outgoing mail instead of talking to SMTP/Resend."""
    sent = []

    def fake_send(to_email, subject, html):
        sent.append({"to": to_email, "subject": subject, "html": html})

    monkeypatch.setattr(email_service, "send_email", fake_send)
    return sent


def make_user(db, role: str, email: str | None = None, phone: str | None = "0712345678",
              password: str = "secret123", name: str = "") -> User:
    u = User(
        id=str(uuid.uuid4()),
        email=email or f"{role}-{uuid.uuid4().hex[:8]}@example.com",
        full_name=name or role.title(),
        phone=phone,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.add(UserRole(id=str(uuid.uuid4()), user_id=u.id, role=role))
    db.commit()
    return u


def make_hostel(db, landlord: User, name: str = "Sunrise Hostel", plot_number: str = "LR 209/1123") -> Hostel:
    h = Hostel(
        id=str(uuid.uuid4()),
        landlord_id=landlord.id,
        name=name,
        location="Juja",
        plot_number=plot_number,
        rent_per_month=5000,
        total_rooms=2,
        images=[],
        is_verified=False,
    )
    db.add(h)
    db.commit()
    return h


def make_room(db, hostel: Hostel, room_number: str = "A1", price: int = 5000,
              deposit: int | None = 5000) -> Room:
    r = Room(
        id=str(uuid.uuid4()),
        hostel_id=hostel.id,
        room_number=room_number,
        price_per_month=price,
        deposit_amount=deposit,
        is_vacant=True,
        images=[],
    )
    db.add(r)
    db.commit()
    return r


def identity_for(user: User, role: str) -> Identity:
    return Identity(user_id=user.id, role=role, email=user.email)


@pytest.fixture
def landlord(db):
    return make_user(db, LANDLORD, email="landlord@example.com", name="Lucy Landlord")


@pytest.fixture
def student(db):
    return make_user(db, STUDENT, email="student@example.com", name="Sam Student")


@pytest.fixture
def other_student(db):
    return make_user(db, STUDENT, email="other@example.com", name="Olive Other")


@pytest.fixture
def admin(db):
    return make_user(db, ADMIN, email="admin@example.com", name="Ada Admin")


@pytest.fixture
def landlord_id(landlord):
    return identity_for(landlord, LANDLORD)


@pytest.fixture
def student_id(student):
    return identity_for(student, STUDENT)


@pytest.fixture
def other_student_id(other_student):
    return identity_for(other_student, STUDENT)


@pytest.fixture
def admin_id(admin):
    return identity_for(admin, ADMIN)


@pytest.fixture
def hostel(db, landlord):
    return make_hostel(db, landlord)


@pytest.fixture
def room(db, hostel):
    return make_room(db, hostel)


@pytest.fixture
def verified_plot(db):
    p = VerifiedPlot(id=str(uuid.uuid4()), plot_number="LR 209/1123", location="Juja", owner_name="Wanjiru")
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from hostellink.main import app
    from hostellink.db.session import get_db

    def override_get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
