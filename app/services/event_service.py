import uuid
from sqlalchemy.orm import Session

from app.core.errors import InvalidQuantityError
from app.db.transaction import run_atomic
from app.models.event import Event
from app.models.event_staff import EventStaff
from app.models.order import Order
from app.models.staff_allocation import StaffTierAllocation
from app.models.staff_sale import StaffSale
from app.models.ticket import Ticket
from app.models.ticket_tier import TicketTier
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.staff_service import get_event_or_404, require_event_organizer


def create_event(db: Session, actor: User, name: str, location: str = "", starts_at=None) -> Event:
    event = Event(id=str(uuid.uuid4()), organizer_id=actor.id, name=name, location=location or "", starts_at=starts_at)

    def unit():
        db.add(event)
        log_audit(db, actor.id, "event.create", "event", event.id, {"name": name})

    run_atomic(db, unit)
    db.refresh(event)
    return event


def create_tier(db: Session, actor: User, event_id: str, name: str, unit_price_cents: int, total_quantity: int) -> TicketTier:
    if unit_price_cents < 0 or total_quantity < 1:
        raise InvalidQuantityError()

    def unit():
        require_event_organizer(db, actor, event_id)
        tier = TicketTier(
            id=str(uuid.uuid4()),
            event_id=event_id,
            name=name,
            unit_price_cents=int(unit_price_cents),
            total_quantity=int(total_quantity),
            sold_count=0,
        )
        db.add(tier)
        log_audit(db, actor.id, "tier.create", "ticket_tier", tier.id, {"eventId": event_id, "priceCents": unit_price_cents, "quantity": total_quantity})
        return tier

    tier = run_atomic(db, unit)
    db.refresh(tier)
    return tier


def list_tiers(db: Session, event_id: str) -> list[TicketTier]:
    get_event_or_404(db, event_id)
    return db.query(TicketTier).filter(TicketTier.event_id == event_id).order_by(TicketTier.created_at.asc()).all()


def delete_event_cascade(db: Session, actor: User, event_id: str) -> dict:
    """Admin reset: remove an event and everything scoped to it."""

    def unit():
        event = get_event_or_404(db, event_id)
        counts = {
            "tickets": db.query(Ticket).filter(Ticket.event_id == event_id).delete(synchronize_session=False),
            "staffSales": db.query(StaffSale).filter(StaffSale.event_id == event_id).delete(synchronize_session=False),
            "orders": db.query(Order).filter(Order.event_id == event_id).delete(synchronize_session=False),
            "allocations": db.query(StaffTierAllocation).filter(StaffTierAllocation.event_id == event_id).delete(synchronize_session=False),
            "staff": db.query(EventStaff).filter(EventStaff.event_id == event_id).delete(synchronize_session=False),
            "tiers": db.query(TicketTier).filter(TicketTier.event_id == event_id).delete(synchronize_session=False),
        }
        db.delete(event)
        log_audit(db, actor.id, "event.reset", "event", event_id, counts)
        return counts

    return run_atomic(db, unit)
