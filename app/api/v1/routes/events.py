from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles
from app.models.event import Event
from app.models.ticket_tier import TicketTier
from app.models.user import User, ADMIN, ORGANIZER
from app.schemas.event import EventIn, EventOut, TierIn, TierOut
from app.services import event_service

router = APIRouter(tags=["events"])


def _event_out(e: Event) -> EventOut:
    return EventOut(id=e.id, organizerId=e.organizer_id, name=e.name, location=e.location or "", status=e.status)


def _tier_out(t: TicketTier) -> TierOut:
    return TierOut(
        id=t.id,
        eventId=t.event_id,
        name=t.name,
        unitPriceCents=t.unit_price_cents,
        totalQuantity=t.total_quantity,
        soldCount=t.sold_count,
        available=t.available,
    )


@router.post("/organizer/events", response_model=EventOut)
def create_event(body: EventIn, db: Session = Depends(get_db), me: User = Depends(require_roles(ORGANIZER, ADMIN))):
    return _event_out(event_service.create_event(db, me, body.name, body.location, body.startsAt))


@router.post("/organizer/events/{event_id}/tiers", response_model=TierOut)
def create_tier(event_id: str, body: TierIn, db: Session = Depends(get_db), me: User = Depends(require_roles(ORGANIZER, ADMIN))):
    tier = event_service.create_tier(db, me, event_id, body.name, body.unitPriceCents, body.totalQuantity)
    return _tier_out(tier)


@router.get("/public/events/{event_id}/tiers", response_model=list[TierOut])
def list_tiers(event_id: str, db: Session = Depends(get_db)):
    return [_tier_out(t) for t in event_service.list_tiers(db, event_id)]
