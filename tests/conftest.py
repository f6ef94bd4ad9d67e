import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"

import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_cash_order_notifier
from app.core.security import create_access_token, hash_password
from app.db.session import Base, get_db
from app.main import app
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.event import Event
from app.models.event_staff import EventStaff, STAFF, TEAM_MEMBER, ASSOCIATE
from app.models.guest_contact import GuestContact  # noqa: F401
from app.models.order import Order  # noqa: F401
from app.models.staff_allocation import StaffTierAllocation  # noqa: F401
from app.models.staff_sale import StaffSale  # noqa: F401
from app.models.ticket import Ticket  # noqa: F401
from app.models.ticket_tier import TicketTier
from app.models.user import User
from app.services.notification_service import CashOrderNotifier

NOW_MS = 1_760_000_000_000


class RecordingNotifier(CashOrderNotifier):
    def __init__(self):
        self.calls = []

    def notify_new_cash_order(self, order_id, event_id, buyer_name, total_cents):
        self.calls.append((order_id, event_id, buyer_name, total_cents))


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(session_factory, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cash_order_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def make_user(db, role: str, name: str = "") -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=f"{uuid.uuid4().hex[:8]}@example.com",
        full_name=name or role.title(),
        role=role,
        password_hash=hash_password("password123"),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


def make_event(db, organizer: User, name: str = "Steppers Ball") -> Event:
    event = Event(id=str(uuid.uuid4()), organizer_id=organizer.id, name=name, location="Chicago")
    db.add(event)
    db.commit()
    return event


def make_tier(db, event: Event, name: str, price_cents: int, quantity: int) -> TicketTier:
    tier = TicketTier(
        id=str(uuid.uuid4()),
        event_id=event.id,
        name=name,
        unit_price_cents=price_cents,
        total_quantity=quantity,
        sold_count=0,
    )
    db.add(tier)
    db.commit()
    return tier


def make_staff(db, event: Event, user: User | None = None, role: str = STAFF, *,
               commission_type: str = "NONE", commission_value=0,
               accept_cash: bool = True, assigned_by: EventStaff | None = None) -> EventStaff:
    staff = EventStaff(
        id=str(uuid.uuid4()),
        event_id=event.id,
        organizer_id=event.organizer_id,
        staff_user_id=user.id if user else None,
        name=user.full_name if user else "Helper",
        email=user.email if user else "",
        role=role,
        assigned_by_staff_id=assigned_by.id if assigned_by else None,
        accept_cash_in_person=accept_cash,
        commission_type=commission_type,
        commission_value=commission_value,
    )
    db.add(staff)
    db.commit()
    return staff


@pytest.fixture
def world(db):
    """One event with two tiers, a cash-accepting door staffer, a team member and their associate."""
    admin = make_user(db, "admin")
    organizer = make_user(db, "organizer")
    door_user = make_user(db, "staff", "Door Staff")
    promoter_user = make_user(db, "staff", "Promoter")
    associate_user = make_user(db, "staff", "Associate")
    outsider = make_user(db, "staff", "Outsider")

    event = make_event(db, organizer)
    ga = make_tier(db, event, "General Admission", 2500, 100)
    vip = make_tier(db, event, "VIP", 7500, 10)

    door = make_staff(db, event, door_user, STAFF, commission_type="FIXED", commission_value=200)
    promoter = make_staff(db, event, promoter_user, TEAM_MEMBER, commission_type="PERCENTAGE", commission_value=10)
    associate = make_staff(db, event, associate_user, ASSOCIATE, assigned_by=promoter)

    return SimpleNamespace(
        admin=admin,
        organizer=organizer,
        door_user=door_user,
        promoter_user=promoter_user,
        associate_user=associate_user,
        outsider=outsider,
        event=event,
        ga=ga,
        vip=vip,
        door=door,
        promoter=promoter,
        associate=associate,
    )
