import pytest

from app.core.errors import InvalidQuantityError, UnauthorizedError
from app.models.audit_log import AuditLog
from app.models.event import Event
from app.models.order import Order
from app.models.ticket import Ticket
from app.models.ticket_tier import TicketTier
from app.services import cash_order_service, event_service
from conftest import NOW_MS


def test_create_event_and_tier(db, world) -> None:
    ev = event_service.create_event(db, world.organizer, "Spring Social", "Detroit")
    tier = event_service.create_tier(db, world.organizer, ev.id, "Early Bird", 1500, 40)

    assert ev.organizer_id == world.organizer.id
    assert (tier.event_id, tier.unit_price_cents, tier.total_quantity, tier.sold_count) == (ev.id, 1500, 40, 0)
    assert [t.id for t in event_service.list_tiers(db, ev.id)] == [tier.id]
    assert db.query(AuditLog).filter_by(action="tier.create", entity_id=tier.id).count() == 1


def test_create_tier_checks_organizer_and_quantities(db, world) -> None:
    with pytest.raises(UnauthorizedError):
        event_service.create_tier(db, world.outsider, world.event.id, "Sneaky", 100, 5)
    with pytest.raises(InvalidQuantityError):
        event_service.create_tier(db, world.organizer, world.event.id, "Empty", 100, 0)
    assert db.query(TicketTier).filter_by(event_id=world.event.id).count() == 2


def test_delete_event_cascade_removes_everything(db, world) -> None:
    cash_order_service.create_cash_order(
        db, world.event.id, "Reset Buyer", "312-555-0142", None,
        [{"tierId": world.ga.id, "quantity": 2}], now_ms=NOW_MS,
    )
    event_id = world.event.id

    counts = event_service.delete_event_cascade(db, world.admin, event_id)

    assert (counts["orders"], counts["tickets"], counts["tiers"], counts["staff"]) == (1, 2, 2, 3)
    assert db.get(Event, event_id) is None
    assert db.query(Ticket).count() == 0


def test_failed_cascade_leaves_event_intact(db, world, monkeypatch) -> None:
    placed = cash_order_service.create_cash_order(
        db, world.event.id, "Reset Buyer", "312-555-0142", None,
        [{"tierId": world.ga.id, "quantity": 2}], now_ms=NOW_MS,
    )
    event_id = world.event.id

    def broken_audit(*args, **kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(event_service, "log_audit", broken_audit)
    with pytest.raises(RuntimeError):
        event_service.delete_event_cascade(db, world.admin, event_id)

    db.expire_all()
    assert db.get(Event, event_id) is not None
    assert db.get(Order, placed["orderId"]) is not None
    assert db.query(Ticket).filter_by(order_id=placed["orderId"]).count() == 2
    assert db.query(TicketTier).filter_by(event_id=event_id).count() == 2
