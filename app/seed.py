import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, OperationalError

from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import hash_password
from app.models.user import User, ADMIN, ORGANIZER, STAFF_USER
from app.models.event import Event
from app.models.ticket_tier import TicketTier
from app.models.event_staff import EventStaff, STAFF, TEAM_MEMBER

logger = logging.getLogger(__name__)

DEMO_EVENT_NAME = "Chicago Steppers Weekend"
DEMO_TIERS = [("General Admission", 2500, 200), ("VIP", 7500, 50)]


def ensure_user(db: Session, email: str, password: str, role: str, name: str) -> User:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=name,
        role=role,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


def ensure_demo_event(db: Session, organizer: User, door: User, promoter: User) -> None:
    if db.query(Event).filter(Event.name == DEMO_EVENT_NAME).first():
        return
    event = Event(id=str(uuid.uuid4()), organizer_id=organizer.id, name=DEMO_EVENT_NAME, location="Chicago, IL")
    db.add(event)
    for name, price_cents, quantity in DEMO_TIERS:
        db.add(TicketTier(
            id=str(uuid.uuid4()),
            event_id=event.id,
            name=name,
            unit_price_cents=price_cents,
            total_quantity=quantity,
            sold_count=0,
        ))
    db.add(EventStaff(
        id=str(uuid.uuid4()),
        event_id=event.id,
        organizer_id=organizer.id,
        staff_user_id=door.id,
        name=door.full_name,
        email=door.email,
        role=STAFF,
        accept_cash_in_person=True,
        commission_type="FIXED",
        commission_value=200,
    ))
    db.add(EventStaff(
        id=str(uuid.uuid4()),
        event_id=event.id,
        organizer_id=organizer.id,
        staff_user_id=promoter.id,
        name=promoter.full_name,
        email=promoter.email,
        role=TEAM_MEMBER,
        accept_cash_in_person=True,
        commission_type="PERCENTAGE",
        commission_value=10,
    ))
    db.commit()
    logger.info("seeded demo event %s", event.id)


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet, skipping seed (run alembic upgrade head)")
            return

        ensure_user(db, "admin@stepperslife.local", "admin12345", ADMIN, "Admin")
        organizer = ensure_user(db, "organizer@stepperslife.local", "organizer12345", ORGANIZER, "Demo Organizer")
        door = ensure_user(db, "door@stepperslife.local", "staff12345", STAFF_USER, "Door Staff")
        promoter = ensure_user(db, "promoter@stepperslife.local", "staff12345", STAFF_USER, "Team Promoter")
        if settings.ENV == "local":
            ensure_demo_event(db, organizer, door, promoter)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
