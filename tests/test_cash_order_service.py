import pytest
from sqlalchemy import event

from app.core.errors import (
    ConcurrentUpdateError,
    InvalidActivationCodeError,
    InvalidQuantityError,
    InvalidStatusError,
    NotFoundError,
    OrderExpiredError,
    StaffNotAuthorizedError,
    TierMismatchError,
    TierSoldOutError,
    UnauthorizedError,
)
from app.models import order as order_status
from app.models import ticket as ticket_status
from app.models.guest_contact import GuestContact
from app.models.order import Order
from app.models.staff_sale import StaffSale
from app.models.ticket import Ticket
from app.services import cash_order_service
from conftest import NOW_MS, make_event, make_staff, make_tier

HOLD_MS = 30 * 60 * 1000


def _place(db, world, notifier=None, tickets=None, now_ms=NOW_MS, phone="312-555-0100"):
    return cash_order_service.create_cash_order(
        db,
        world.event.id,
        "Ada Buyer",
        phone,
        "Ada@Example.com",
        tickets or [{"tierId": world.ga.id, "quantity": 2}],
        notifier=notifier,
        now_ms=now_ms,
    )


def _tickets(db, order_id):
    db.expire_all()
    return db.query(Ticket).filter(Ticket.order_id == order_id).all()


def test_create_holds_inventory_and_snapshots_prices(db, world, notifier) -> None:
    result = _place(db, world, notifier, tickets=[
        {"tierId": world.ga.id, "quantity": 2},
        {"tierId": world.vip.id, "quantity": 1},
    ])

    assert result["totalCents"] == 2 * 2500 + 7500
    assert result["holdExpiresAt"] == NOW_MS + HOLD_MS
    assert result["orderNumber"].startswith("CASH-")
    assert len(result["ticketIds"]) == 3
    assert "Order #" in result["message"]

    order = db.get(Order, result["orderId"])
    assert order.status == order_status.PENDING_CASH_PAYMENT
    assert order.payment_method == "CASH"
    assert order.platform_fee_cents == 0 and order.processing_fee_cents == 0
    assert order.total_cents == order.subtotal_cents
    assert order.buyer_email == "ada@example.com"

    tickets = _tickets(db, order.id)
    assert {t.status for t in tickets} == {ticket_status.PENDING}
    assert sorted(t.price_cents for t in tickets) == [2500, 2500, 7500]
    assert len({t.ticket_code for t in tickets}) == 3

    db.refresh(world.ga)
    db.refresh(world.vip)
    assert (world.ga.sold_count, world.vip.sold_count) == (2, 1)
    assert notifier.calls == [(order.id, world.event.id, "Ada Buyer", 12500)]


def test_repeat_buyer_reuses_guest_contact(db, world) -> None:
    _place(db, world)
    _place(db, world)
    assert db.query(GuestContact).count() == 1


def test_create_rejects_sold_out_tier(db, world, notifier) -> None:
    with pytest.raises(TierSoldOutError):
        _place(db, world, notifier, tickets=[{"tierId": world.vip.id, "quantity": 11}])
    db.refresh(world.vip)
    assert world.vip.sold_count == 0
    assert db.query(Order).count() == 0
    assert notifier.calls == []


def test_create_rejects_tier_from_other_event(db, world) -> None:
    other = make_tier(db, make_event(db, world.organizer, "Other"), "GA", 1000, 5)
    with pytest.raises(TierMismatchError):
        _place(db, world, tickets=[{"tierId": other.id, "quantity": 1}])


def test_create_rejects_bad_quantities(db, world) -> None:
    with pytest.raises(InvalidQuantityError):
        _place(db, world, tickets=[{"tierId": world.ga.id, "quantity": 0}])
    with pytest.raises(InvalidQuantityError):
        cash_order_service.create_cash_order(db, world.event.id, "A", "1", None, [], now_ms=NOW_MS)


def test_create_for_unknown_event(db, world) -> None:
    with pytest.raises(NotFoundError):
        cash_order_service.create_cash_order(
            db, "missing", "A", "1", None, [{"tierId": world.ga.id, "quantity": 1}], now_ms=NOW_MS
        )


def test_multi_tier_order_locks_tiers_in_id_order(db, world) -> None:
    tiers = sorted([world.ga.id, world.vip.id], reverse=True)
    locked = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().startswith("SELECT") and "FROM ticket_tiers" in statement and "ticket_tiers.id =" in statement:
            locked.extend(p for p in parameters if p in tiers)

    event.listen(db.get_bind(), "before_cursor_execute", capture)
    try:
        _place(db, world, tickets=[{"tierId": tiers[0], "quantity": 1}, {"tierId": tiers[1], "quantity": 1}])
    finally:
        event.remove(db.get_bind(), "before_cursor_execute", capture)

    assert locked[:2] == sorted(tiers)


def test_order_number_exhaustion_is_a_conflict(db, world, monkeypatch) -> None:
    monkeypatch.setattr(cash_order_service, "make_order_number", lambda now_ms: "CASH-FIXED")
    _place(db, world, tickets=[{"tierId": world.ga.id, "quantity": 1}])

    with pytest.raises(ConcurrentUpdateError):
        _place(db, world, tickets=[{"tierId": world.ga.id, "quantity": 2}], phone="312-555-0101")

    assert db.query(Order).count() == 1
    db.refresh(world.ga)
    assert world.ga.sold_count == 1


def test_notifier_failure_does_not_fail_the_order(db, world) -> None:
    class Broken:
        def notify_new_cash_order(self, *args):
            raise RuntimeError("broker down")

    result = _place(db, world, notifier=Broken())
    assert db.get(Order, result["orderId"]).status == order_status.PENDING_CASH_PAYMENT


def test_approve_completes_order_and_credits_staff(db, world) -> None:
    placed = _place(db, world)
    result = cash_order_service.approve_cash_order(db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS + 1000)

    # FIXED 200 cents per ticket, 2 tickets
    assert result == {"success": True, "orderId": placed["orderId"], "ticketsActivated": 2, "commission": 400}
    order = db.get(Order, placed["orderId"])
    assert order.status == order_status.COMPLETED
    assert order.approved_by_staff_id == world.door.id
    assert order.sold_by_staff_id == world.door.id
    assert order.paid_at is not None
    assert order.staff_commission_cents == 400
    assert {t.status for t in _tickets(db, order.id)} == {ticket_status.ACTIVE}

    db.refresh(world.door)
    assert world.door.tickets_sold == 2
    assert world.door.cash_collected_cents == 5000
    assert world.door.commission_earned_cents == 400
    sale = db.query(StaffSale).filter_by(order_id=order.id).one()
    assert (sale.staff_id, sale.ticket_count, sale.commission_cents) == (world.door.id, 2, 400)


def test_approve_activates_exactly_the_ordered_tickets(db, world) -> None:
    placed = _place(db, world, tickets=[{"tierId": world.ga.id, "quantity": 3}])
    result = cash_order_service.approve_cash_order(db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS)

    assert result["ticketsActivated"] == 3
    tickets = _tickets(db, placed["orderId"])
    assert len(tickets) == 3
    assert all(t.status == ticket_status.ACTIVE for t in tickets)


def test_approve_with_percentage_commission(db, world) -> None:
    placed = _place(db, world, tickets=[{"tierId": world.vip.id, "quantity": 1}])
    result = cash_order_service.approve_cash_order(db, world.promoter_user, placed["orderId"], world.promoter.id, now_ms=NOW_MS)
    assert result["commission"] == 750


def test_approve_twice_fails_without_double_credit(db, world) -> None:
    placed = _place(db, world)
    cash_order_service.approve_cash_order(db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS)
    with pytest.raises(InvalidStatusError):
        cash_order_service.approve_cash_order(db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS)
    db.refresh(world.door)
    assert world.door.tickets_sold == 2
    assert db.query(StaffSale).count() == 1


def test_approve_after_hold_lapsed_is_expired(db, world) -> None:
    placed = _place(db, world)
    with pytest.raises(OrderExpiredError):
        cash_order_service.approve_cash_order(db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS + HOLD_MS)
    assert db.get(Order, placed["orderId"]).status == order_status.PENDING_CASH_PAYMENT


def test_approve_requires_cash_accepting_staff(db, world) -> None:
    no_cash = make_staff(db, world.event, world.outsider, accept_cash=False)
    placed = _place(db, world)
    with pytest.raises(StaffNotAuthorizedError):
        cash_order_service.approve_cash_order(db, world.outsider, placed["orderId"], no_cash.id, now_ms=NOW_MS)


def test_approve_rejects_staff_of_another_event(db, world) -> None:
    other_event = make_event(db, world.organizer, "Other")
    other_staff = make_staff(db, other_event, world.outsider)
    placed = _place(db, world)
    with pytest.raises(UnauthorizedError):
        cash_order_service.approve_cash_order(db, world.outsider, placed["orderId"], other_staff.id, now_ms=NOW_MS)


def test_approve_rejects_caller_acting_for_other_staff(db, world) -> None:
    placed = _place(db, world)
    with pytest.raises(UnauthorizedError):
        cash_order_service.approve_cash_order(db, world.outsider, placed["orderId"], world.door.id, now_ms=NOW_MS)


def test_approve_unknown_order(db, world) -> None:
    with pytest.raises(NotFoundError):
        cash_order_service.approve_cash_order(db, world.door_user, "missing", world.door.id, now_ms=NOW_MS)


def test_activation_code_flow(db, world) -> None:
    placed = _place(db, world)
    issued = cash_order_service.generate_cash_activation_code(db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS)

    code = issued["activationCode"]
    assert len(code) == 4 and code.isdigit() and 1000 <= int(code) <= 9999
    assert issued["ticketCount"] == 2
    order = db.get(Order, placed["orderId"])
    assert order.status == order_status.CODE_ISSUED_AWAITING_ACTIVATION
    assert {t.activation_code for t in _tickets(db, order.id)} == {code}
    db.refresh(world.door)
    assert world.door.tickets_sold == 2
    assert world.door.commission_earned_cents == 400

    # the code replaces approval
    with pytest.raises(InvalidStatusError):
        cash_order_service.approve_cash_order(db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS)

    wrong = "0000" if code != "0000" else "1111"
    with pytest.raises(InvalidActivationCodeError):
        cash_order_service.activate_cash_order(db, placed["orderId"], wrong, now_ms=NOW_MS)

    activated = cash_order_service.activate_cash_order(
        db, placed["orderId"], code, customer_name="Grace", customer_email="Grace@Example.com", now_ms=NOW_MS + HOLD_MS * 2
    )
    assert activated["success"] is True
    assert len(activated["ticketCodes"]) == 2
    tickets = _tickets(db, placed["orderId"])
    assert {t.status for t in tickets} == {ticket_status.VALID}
    assert {t.attendee_email for t in tickets} == {"grace@example.com"}
    assert db.get(Order, placed["orderId"]).status == order_status.COMPLETED

    with pytest.raises(InvalidStatusError):
        cash_order_service.activate_cash_order(db, placed["orderId"], code, now_ms=NOW_MS)


def test_activate_pending_order_without_code(db, world) -> None:
    placed = _place(db, world)
    with pytest.raises(InvalidStatusError):
        cash_order_service.activate_cash_order(db, placed["orderId"], "1234", now_ms=NOW_MS)


def test_generate_code_after_hold_lapsed(db, world) -> None:
    placed = _place(db, world)
    with pytest.raises(OrderExpiredError):
        cash_order_service.generate_cash_activation_code(
            db, world.door_user, placed["orderId"], world.door.id, now_ms=NOW_MS + HOLD_MS + 1
        )


def test_pending_orders_sorted_by_time_remaining(db, world) -> None:
    late = _place(db, world, now_ms=NOW_MS + 10 * 60 * 1000)
    early = _place(db, world, now_ms=NOW_MS)
    lapsed = _place(db, world, now_ms=NOW_MS - HOLD_MS - 1)

    items = cash_order_service.get_pending_cash_orders(db, world.door_user, staff_id=world.door.id, now_ms=NOW_MS + 60_000)
    assert [i["orderId"] for i in items] == [early["orderId"], late["orderId"]]
    assert lapsed["orderId"] not in {i["orderId"] for i in items}
    first = items[0]
    assert first["timeRemaining"] == HOLD_MS - 60_000
    assert first["expiresIn"] == 29
    assert first["ticketCount"] == 2
    assert first["isExpired"] is False


def test_pending_orders_visibility(db, world) -> None:
    _place(db, world)
    assert len(cash_order_service.get_pending_cash_orders(db, world.organizer, event_id=world.event.id, now_ms=NOW_MS)) == 1
    assert len(cash_order_service.get_pending_cash_orders(db, world.admin, now_ms=NOW_MS)) == 1
    with pytest.raises(UnauthorizedError):
        cash_order_service.get_pending_cash_orders(db, world.outsider, event_id=world.event.id, now_ms=NOW_MS)
    with pytest.raises(UnauthorizedError):
        cash_order_service.get_pending_cash_orders(db, world.organizer, now_ms=NOW_MS)
