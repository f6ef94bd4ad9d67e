import uuid
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy import select

from app.core.errors import NotFoundError, UnauthorizedError
from app.db.transaction import run_atomic
from app.models.event import Event
from app.models.event_staff import EventStaff, STAFF, TEAM_MEMBER, ASSOCIATE
from app.models.user import User, ADMIN
from app.services.audit_service import log_audit
from app.services.commission_service import COMMISSION_TYPES, NONE


def is_admin(actor: User) -> bool:
    return actor.role == ADMIN


def get_event_or_404(db: Session, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFoundError("Event", event_id)
    return event


def get_staff_or_404(db: Session, staff_id: str, for_update: bool = False) -> EventStaff:
    if for_update:
        staff = db.execute(
            select(EventStaff).where(EventStaff.id == staff_id).with_for_update()
        ).scalar_one_or_none()
    else:
        staff = db.get(EventStaff, staff_id)
    if not staff:
        raise NotFoundError("Staff member", staff_id)
    return staff


def require_event_organizer(db: Session, actor: User, event_id: str) -> Event:
    event = get_event_or_404(db, event_id)
    if event.organizer_id != actor.id and not is_admin(actor):
        raise UnauthorizedError("Only the event organizer can do this")
    return event


def can_act_for_staff(actor: User, staff: EventStaff) -> bool:
    """The staff member themselves, the organizer of their event, or an admin."""
    return staff.staff_user_id == actor.id or staff.organizer_id == actor.id or is_admin(actor)


def _validate_commission(commission_type: str, commission_value) -> Decimal:
    if commission_type not in COMMISSION_TYPES:
        raise ValueError(f"invalid commission type: {commission_type}")
    value = Decimal(str(commission_value or 0))
    if value < 0:
        raise ValueError("commission value cannot be negative")
    return value


def add_staff_member(db: Session, actor: User, event_id: str, *, name: str, email: str,
                     staff_user_id: str | None = None, role: str = STAFF,
                     commission_type: str = NONE, commission_value=0,
                     accept_cash_in_person: bool = False) -> EventStaff:
    """Organizer adds door staff or a team member to their event."""
    if role not in (STAFF, TEAM_MEMBER):
        raise ValueError("organizers add STAFF or TEAM_MEMBER; associates are assigned by team members")
    value = _validate_commission(commission_type, commission_value)

    def unit():
        event = require_event_organizer(db, actor, event_id)
        staff = EventStaff(
            id=str(uuid.uuid4()),
            event_id=event.id,
            organizer_id=event.organizer_id,
            staff_user_id=staff_user_id,
            name=name,
            email=(email or "").lower(),
            role=role,
            commission_type=commission_type,
            commission_value=value,
            accept_cash_in_person=accept_cash_in_person,
        )
        db.add(staff)
        log_audit(db, actor.id, "staff.add", "staff", staff.id, {"eventId": event.id, "role": role})
        return staff

    staff = run_atomic(db, unit)
    db.refresh(staff)
    return staff


def assign_associate(db: Session, actor: User, team_member_staff_id: str, *, name: str, email: str,
                     staff_user_id: str | None = None, commission_type: str = NONE,
                     commission_value=0, accept_cash_in_person: bool = False) -> EventStaff:
    """A team member assigns an associate under themselves."""
    value = _validate_commission(commission_type, commission_value)

    def unit():
        team_member = get_staff_or_404(db, team_member_staff_id)
        if not can_act_for_staff(actor, team_member):
            raise UnauthorizedError("Only the team member can assign their associates")
        if team_member.role != TEAM_MEMBER:
            raise UnauthorizedError("Only team members can assign associates")
        associate = EventStaff(
            id=str(uuid.uuid4()),
            event_id=team_member.event_id,
            organizer_id=team_member.organizer_id,
            staff_user_id=staff_user_id,
            name=name,
            email=(email or "").lower(),
            role=ASSOCIATE,
            assigned_by_staff_id=team_member.id,
            commission_type=commission_type,
            commission_value=value,
            accept_cash_in_person=accept_cash_in_person,
        )
        db.add(associate)
        log_audit(db, actor.id, "staff.assign_associate", "staff", associate.id, {"assignedBy": team_member.id})
        return associate

    associate = run_atomic(db, unit)
    db.refresh(associate)
    return associate


def update_cash_settings(db: Session, actor: User, staff_id: str, accept_cash_in_person: bool) -> EventStaff:
    def unit():
        staff = get_staff_or_404(db, staff_id, for_update=True)
        if staff.staff_user_id != actor.id:
            raise UnauthorizedError("You can only update your own settings")
        staff.accept_cash_in_person = bool(accept_cash_in_person)
        log_audit(db, actor.id, "staff.cash_settings", "staff", staff.id, {"acceptCashInPerson": staff.accept_cash_in_person})
        return staff

    staff = run_atomic(db, unit)
    db.refresh(staff)
    return staff


def list_event_staff(db: Session, actor: User, event_id: str) -> list[EventStaff]:
    require_event_organizer(db, actor, event_id)
    return db.query(EventStaff).filter(EventStaff.event_id == event_id).order_by(EventStaff.created_at.asc()).all()


