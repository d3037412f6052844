"""
Shared fixtures: an in-memory SQLite database wired into the app through
``get_db``, the full 1-50 seat inventory, and a member and an admin with
bearer tokens.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, get_password_hash
from app.models.booking import Booking
from app.models.seat import Seat
from app.models.user import User
from app.models.waitlist import WaitlistEntry

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# One hash for every fixture user; bcrypt is slow
PASSWORD = "studyhard123"
PASSWORD_HASH = get_password_hash(PASSWORD)

MARCH = datetime(2024, 3, 1, tzinfo=timezone.utc)
APRIL = datetime(2024, 4, 1, tzinfo=timezone.utc)


def _override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seats(db):
    """Seats 1-50 keyed by number."""
    rows = [Seat(seat_number=n) for n in range(1, 51)]
    db.add_all(rows)
    db.commit()
    return {s.seat_number: s for s in rows}


@pytest.fixture
def make_user(db):
    def _make(full_name, email, role="user"):
        user = User(email=email, password_hash=PASSWORD_HASH, full_name=full_name, role=role)
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def member(make_user):
    return make_user("Asha Verma", "asha@studyhub.in")


@pytest.fixture
def other_member(make_user):
    return make_user("Ravi Kumar", "ravi@studyhub.in")


@pytest.fixture
def admin(make_user):
    return make_user("Front Desk", "desk@studyhub.in", role="admin")


def _headers(user):
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id), role=user.role)}"}


@pytest.fixture
def member_headers(member):
    return _headers(member)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def make_booking(db):
    """Insert a booking row directly, bypassing the write path."""
    def _make(seat, user, duration_type="12hr", slot="day", start=MARCH, end=APRIL, **fields):
        values = dict(
            seat_id=seat.id if seat is not None else None,
            user_id=user.id,
            category=fields.pop("category", "fixed" if duration_type == "24hr" else "limited"),
            duration_type=duration_type,
            slot=slot,
            start_time=start,
            end_time=end,
            membership_start_date=start.date(),
            membership_end_date=end.date(),
            status="confirmed",
            payment_status="paid",
            monthly_cost=Decimal("2300"),
            duration_months=1,
        )
        values.update(fields)
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        return booking
    return _make


@pytest.fixture
def make_waitlist_entry(db):
    def _make(seat, user, slot="day"):
        entry = WaitlistEntry(seat_id=seat.id, user_id=user.id, slot=slot)
        db.add(entry)
        db.commit()
        return entry
    return _make
