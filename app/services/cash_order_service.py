"""Cash payment orders for in-person ticket sales.

Flow:
1. Buyer picks "Pay cash in person" at checkout: the order is created in
   PENDING_CASH_PAYMENT, tier inventory is held for CASH_HOLD_MINUTES and
   staff are notified.
2. A cash-accepting staff member either approves the payment (order
   COMPLETED, tickets ACTIVE) or issues a 4-digit activation code (order
   CODE_ISSUED_AWAITING_ACTIVATION) that the buyer later redeems (order
   COMPLETED, tickets VALID).
3. Holds nobody fulfils are expired by the beat sweep, which hands the held
   inventory back to the tier.
"""
import logging
import random
import secrets
import string
import uuid
from collections import OrderedDict, Counter
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.errors import (
    ConcurrentUpdateError,
    DomainError,
    InvalidActivationCodeError,
    InvalidQuantityError,
    InvalidStatusError,
    NotFoundError,
    OrderExpiredError,
    StaffNotAuthorizedError,
    TierMismatchError,
    TierNotFoundError,
    TierSoldOutError,
    UnauthorizedError,
)
from app.db.transaction import run_atomic
from app.models.event_staff import EventStaff
from app.models.guest_contact import GuestContact
from app.models.order import (
    Order,
    PENDING_CASH_PAYMENT,
    CODE_ISSUED_AWAITING_ACTIVATION,
    COMPLETED,
    EXPIRED,
)
from app.models import ticket as ticket_status
from app.models.staff_sale import StaffSale
from app.models.ticket import Ticket
from app.models.ticket_tier import TicketTier
from app.models.user import User
from app.services.audit_service import GUEST, SYSTEM, log_audit
from app.services.commission_service import compute_commission
from app.services.notification_service import CashOrderNotifier
from app.services.staff_service import can_act_for_staff, get_event_or_404, get_staff_or_404, is_admin

logger = logging.getLogger(__name__)

PAYMENT_METHOD_CASH = "CASH"


def current_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _ms_to_dt(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def hold_duration_ms() -> int:
    return settings.CASH_HOLD_MINUTES * 60 * 1000


def make_order_number(now_ms: int) -> str:
    return f"CASH-{str(now_ms)[-6:]}-{random.randint(1000, 9999)}"


def make_ticket_code() -> str:
    return "CASH-" + "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(10))


def make_activation_code() -> str:
    return str(1000 + secrets.randbelow(9000))


def _get_or_create_guest_contact(db: Session, name: str, phone: str, email: str | None) -> GuestContact:
    phone = (phone or "").strip()
    contact = db.query(GuestContact).filter(GuestContact.phone == phone).first()
    if contact:
        if name:
            contact.name = name
        if email:
            contact.email = email.lower()
        return contact
    contact = GuestContact(id=str(uuid.uuid4()), name=name or "", phone=phone, email=(email or "").lower())
    db.add(contact)
    return contact


def _group_requested(tickets: list[dict]) -> "OrderedDict[str, int]":
    requested: OrderedDict[str, int] = OrderedDict()
    for item in tickets:
        qty = item.get("quantity")
        if not isinstance(qty, int) or isinstance(qty, bool) or qty < 1:
            raise InvalidQuantityError()
        requested[item["tierId"]] = requested.get(item["tierId"], 0) + qty
    if not requested:
        raise InvalidQuantityError()
    return requested


def _lock_tiers(db: Session, tier_ids) -> dict[str, TicketTier]:
    """Lock tier rows in id order so concurrent multi-tier orders cannot deadlock."""
    tiers = {}
    for tier_id in sorted(tier_ids):
        tier = db.execute(select(TicketTier).where(TicketTier.id == tier_id).with_for_update()).scalar_one_or_none()
        if not tier:
            raise TierNotFoundError(tier_id)
        tiers[tier_id] = tier
    return tiers


def create_cash_order(db: Session, event_id: str, buyer_name: str, buyer_phone: str,
                      buyer_email: str | None, tickets: list[dict],
                      notifier: CashOrderNotifier | None = None, now_ms: int | None = None) -> dict:
    """Create a PENDING_CASH_PAYMENT order holding tier inventory.

    ``tickets`` is a list of ``{"tierId": ..., "quantity": ...}``. Prices are
    snapshotted onto the order and its tickets.
    """
    requested = _group_requested(tickets)
    now = now_ms if now_ms is not None else current_ms()
    hold_expires_at = now + hold_duration_ms()

    def unit():
        get_event_or_404(db, event_id)

        tiers = _lock_tiers(db, requested)
        subtotal_cents = 0
        lines = []
        for tier_id, quantity in requested.items():
            tier = tiers[tier_id]
            if tier.event_id != event_id:
                raise TierMismatchError("Ticket tier does not belong to this event")
            if tier.available < quantity:
                raise TierSoldOutError(tier.name, max(tier.available, 0))
            tier.sold_count += quantity
            subtotal_cents += tier.unit_price_cents * quantity
            lines.append((tier.id, quantity, tier.unit_price_cents))

        contact = _get_or_create_guest_contact(db, buyer_name, buyer_phone, buyer_email)

        # order_number must be unique
        for _ in range(10):
            order_number = make_order_number(now)
            if not db.query(Order.id).filter(Order.order_number == order_number).first():
                break
        else:
            raise ConcurrentUpdateError()

        # No platform or processing fees on cash orders
        order = Order(
            id=str(uuid.uuid4()),
            order_number=order_number,
            event_id=event_id,
            guest_contact_id=contact.id,
            buyer_name=buyer_name,
            buyer_email=(buyer_email or "").lower(),
            buyer_phone=buyer_phone,
            status=PENDING_CASH_PAYMENT,
            payment_method=PAYMENT_METHOD_CASH,
            subtotal_cents=subtotal_cents,
            platform_fee_cents=0,
            processing_fee_cents=0,
            total_cents=subtotal_cents,
            hold_expires_at=hold_expires_at,
        )
        db.add(order)

        ticket_ids = []
        for tier_id, quantity, price_cents in lines:
            for _ in range(quantity):
                t = Ticket(
                    id=str(uuid.uuid4()),
                    event_id=event_id,
                    order_id=order.id,
                    ticket_tier_id=tier_id,
                    ticket_code=make_ticket_code(),
                    status=ticket_status.PENDING,
                    price_cents=price_cents,
                    attendee_name=buyer_name,
                    attendee_email=(buyer_email or "").lower(),
                    attendee_phone=buyer_phone,
                )
                db.add(t)
                ticket_ids.append(t.id)

        db.flush()
        log_audit(db, GUEST, "cash_order.create", "order", order.id, {"orderNumber": order_number, "totalCents": subtotal_cents, "tickets": len(ticket_ids)})
        return {
            "orderId": order.id,
            "orderNumber": order_number,
            "totalCents": subtotal_cents,
            "holdExpiresAt": hold_expires_at,
            "ticketIds": ticket_ids,
            "message": (
                f"Your tickets are on hold for {settings.CASH_HOLD_MINUTES} minutes. "
                f"Complete payment with the seller. Order #: {order_number}"
            ),
        }

    result = run_atomic(db, unit)
    logger.info("cash order %s created: %d tickets, %d cents", result["orderNumber"], len(result["ticketIds"]), result["totalCents"])

    if notifier is not None:
        try:
            notifier.notify_new_cash_order(result["orderId"], event_id, buyer_name, result["totalCents"])
        except Exception:
            logger.exception("new cash order notification failed for %s", result["orderNumber"])
    return result


def _get_order_for_update(db: Session, order_id: str) -> Order:
    order = db.execute(select(Order).where(Order.id == order_id).with_for_update()).scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def _order_tickets(db: Session, order_id: str) -> list[Ticket]:
    return db.query(Ticket).filter(Ticket.order_id == order_id).order_by(Ticket.created_at.asc()).all()


def _ensure_fulfillable(order: Order, now_ms: int, action: str) -> None:
    if order.status == EXPIRED:
        raise OrderExpiredError()
    if order.status != PENDING_CASH_PAYMENT:
        raise InvalidStatusError(action, order.status)
    if order.hold_expires_at is not None and now_ms >= order.hold_expires_at:
        raise OrderExpiredError()


def _ensure_staff_can_collect(actor: User, staff: EventStaff, order: Order) -> None:
    if not can_act_for_staff(actor, staff):
        raise UnauthorizedError("Unauthorized to act for this staff member")
    if staff.event_id != order.event_id:
        raise UnauthorizedError("Staff member is not assigned to this event")
    if not staff.accept_cash_in_person or not staff.is_active:
        raise StaffNotAuthorizedError()


def _credit_staff(db: Session, staff: EventStaff, order: Order, ticket_count: int) -> int:
    """Credit the collecting staff member for a fulfilled cash order and append the sale record."""
    commission = compute_commission(staff.commission_type, staff.commission_value, order.subtotal_cents, ticket_count)
    staff.tickets_sold = (staff.tickets_sold or 0) + ticket_count
    staff.cash_collected_cents = (staff.cash_collected_cents or 0) + order.total_cents
    staff.commission_earned_cents = (staff.commission_earned_cents or 0) + commission
    order.staff_commission_cents = commission
    db.add(StaffSale(
        id=str(uuid.uuid4()),
        order_id=order.id,
        event_id=order.event_id,
        staff_id=staff.id,
        staff_user_id=staff.staff_user_id,
        ticket_count=ticket_count,
        commission_cents=commission,
        payment_method=order.payment_method or PAYMENT_METHOD_CASH,
    ))
    return commission


def approve_cash_order(db: Session, actor: User, order_id: str, staff_id: str, now_ms: int | None = None) -> dict:
    now = now_ms if now_ms is not None else current_ms()

    def unit():
        order = _get_order_for_update(db, order_id)
        _ensure_fulfillable(order, now, "approve")
        staff = get_staff_or_404(db, staff_id, for_update=True)
        _ensure_staff_can_collect(actor, staff, order)

        tickets = _order_tickets(db, order.id)
        stamp = _ms_to_dt(now)
        order.status = COMPLETED
        order.paid_at = stamp
        order.approved_at = stamp
        order.approved_by_staff_id = staff.id
        order.sold_by_staff_id = staff.id
        for t in tickets:
            t.status = ticket_status.ACTIVE
            t.sold_by_staff_id = staff.id

        commission = _credit_staff(db, staff, order, len(tickets))
        log_audit(db, actor.id, "cash_order.approve", "order", order.id, {"staffId": staff.id, "tickets": len(tickets), "commissionCents": commission})
        return {"success": True, "orderId": order.id, "ticketsActivated": len(tickets), "commission": commission}

    result = run_atomic(db, unit)
    logger.info("cash order %s approved by staff %s", order_id, staff_id)
    return result


def generate_cash_activation_code(db: Session, actor: User, order_id: str, staff_id: str, now_ms: int | None = None) -> dict:
    """Issue a 4-digit code the buyer redeems to complete the order.

    The staff member has collected the cash, so they are credited now; the
    order waits in CODE_ISSUED_AWAITING_ACTIVATION and can no longer be
    approved.
    """
    now = now_ms if now_ms is not None else current_ms()

    def unit():
        order = _get_order_for_update(db, order_id)
        _ensure_fulfillable(order, now, "generate code for")
        staff = get_staff_or_404(db, staff_id, for_update=True)
        _ensure_staff_can_collect(actor, staff, order)

        activation_code = make_activation_code()
        tickets = _order_tickets(db, order.id)
        for t in tickets:
            t.activation_code = activation_code
            t.sold_by_staff_id = staff.id
        order.status = CODE_ISSUED_AWAITING_ACTIVATION
        order.code_issued_at = _ms_to_dt(now)
        order.sold_by_staff_id = staff.id

        _credit_staff(db, staff, order, len(tickets))
        log_audit(db, actor.id, "cash_order.code_issued", "order", order.id, {"staffId": staff.id, "tickets": len(tickets)})
        return {"success": True, "activationCode": activation_code, "ticketCount": len(tickets), "orderId": order.id}

    return run_atomic(db, unit)


def activate_cash_order(db: Session, order_id: str, activation_code: str,
                        customer_name: str | None = None, customer_email: str | None = None,
                        now_ms: int | None = None) -> dict:
    """Buyer redeems the activation code handed out by staff."""
    now = now_ms if now_ms is not None else current_ms()

    def unit():
        order = _get_order_for_update(db, order_id)
        if order.status != CODE_ISSUED_AWAITING_ACTIVATION:
            raise InvalidStatusError("activate", order.status)
        tickets = _order_tickets(db, order.id)
        if not tickets or not all(
            t.activation_code and secrets.compare_digest(t.activation_code, str(activation_code or "")) for t in tickets
        ):
            raise InvalidActivationCodeError()

        stamp = _ms_to_dt(now)
        for t in tickets:
            t.status = ticket_status.VALID
            t.activated_at = stamp
            if customer_name:
                t.attendee_name = customer_name
            if customer_email:
                t.attendee_email = customer_email.lower()
        order.status = COMPLETED
        order.paid_at = stamp
        log_audit(db, GUEST, "cash_order.activate", "order", order.id, {"tickets": len(tickets)})
        return {"success": True, "orderId": order.id, "ticketCodes": [t.ticket_code for t in tickets]}

    return run_atomic(db, unit)


def _can_view_event_orders(db: Session, actor: User, event_id: str) -> bool:
    event = get_event_or_404(db, event_id)
    if event.organizer_id == actor.id or is_admin(actor):
        return True
    return db.query(EventStaff.id).filter(
        EventStaff.event_id == event_id, EventStaff.staff_user_id == actor.id
    ).first() is not None


def _order_out(order: Order, ticket_count: int) -> dict:
    return {
        "orderId": order.id,
        "orderNumber": order.order_number,
        "eventId": order.event_id,
        "status": order.status,
        "buyerName": order.buyer_name,
        "buyerPhone": order.buyer_phone,
        "buyerEmail": order.buyer_email,
        "subtotalCents": order.subtotal_cents,
        "totalCents": order.total_cents,
        "holdExpiresAt": order.hold_expires_at,
        "ticketCount": ticket_count,
    }


def get_pending_cash_orders(db: Session, actor: User, event_id: str | None = None,
                            staff_id: str | None = None, now_ms: int | None = None) -> list[dict]:
    """Unexpired PENDING_CASH_PAYMENT orders, soonest-expiring first."""
    now = now_ms if now_ms is not None else current_ms()

    if staff_id:
        staff = get_staff_or_404(db, staff_id)
        if not can_act_for_staff(actor, staff):
            raise UnauthorizedError("Unauthorized to view orders for this staff member")
        if event_id and event_id != staff.event_id:
            raise UnauthorizedError("Staff member is not assigned to this event")
        event_id = staff.event_id
    elif event_id:
        if not _can_view_event_orders(db, actor, event_id):
            raise UnauthorizedError("Unauthorized to view orders for this event")
    elif not is_admin(actor):
        raise UnauthorizedError("Only admins can list pending orders across events")

    query = db.query(Order).filter(Order.status == PENDING_CASH_PAYMENT)
    if event_id:
        query = query.filter(Order.event_id == event_id)

    items = []
    for order in query.all():
        time_remaining = (order.hold_expires_at - now) if order.hold_expires_at else 0
        if time_remaining <= 0:
            continue  # left for the expiry sweep
        ticket_count = db.query(Ticket).filter(Ticket.order_id == order.id).count()
        items.append({
            **_order_out(order, ticket_count),
            "timeRemaining": time_remaining,
            "isExpired": False,
            "expiresIn": time_remaining // 1000 // 60,
        })
    items.sort(key=lambda o: o["timeRemaining"])
    return items


def get_expired_cash_orders(db: Session, actor: User, event_id: str, limit: int = 50) -> list[dict]:
    if not _can_view_event_orders(db, actor, event_id):
        raise UnauthorizedError("Unauthorized to view orders for this event")
    orders = (
        db.query(Order)
        .filter(Order.event_id == event_id, Order.status == EXPIRED)
        .order_by(Order.created_at.desc())
        .limit(min(max(limit, 1), 500))
        .all()
    )
    return [
        {**_order_out(o, db.query(Ticket).filter(Ticket.order_id == o.id).count()),
         "expiredAt": o.expired_at.isoformat() if o.expired_at else None}
        for o in orders
    ]


def _expire_one(db: Session, order_id: str, now_ms: int) -> bool:
    order = _get_order_for_update(db, order_id)
    if order.status != PENDING_CASH_PAYMENT or order.hold_expires_at is None or order.hold_expires_at > now_ms:
        return False

    tickets = _order_tickets(db, order.id)
    held = Counter(t.ticket_tier_id for t in tickets if t.status == ticket_status.PENDING)
    for tier_id, tier in _lock_tiers(db, held).items():
        tier.sold_count = max(0, tier.sold_count - held[tier_id])
    for t in tickets:
        t.status = ticket_status.EXPIRED
    order.status = EXPIRED
    order.expired_at = _ms_to_dt(now_ms)
    log_audit(db, SYSTEM, "cash_order.expire", "order", order.id, {"released": dict(held)})
    return True


def expire_cash_holds(db: Session, now_ms: int | None = None, limit: int = 500) -> dict:
    """Move lapsed cash holds to EXPIRED and return their inventory to the tier."""
    now = now_ms if now_ms is not None else current_ms()
    order_ids = [
        r[0] for r in db.query(Order.id)
        .filter(
            Order.status == PENDING_CASH_PAYMENT,
            Order.hold_expires_at != None,
            Order.hold_expires_at <= now,
        )
        .order_by(Order.hold_expires_at.asc())
        .limit(limit)
        .all()
    ]
    expired, skipped = 0, 0
    for oid in order_ids:
        try:
            if run_atomic(db, lambda oid=oid: _expire_one(db, oid, now)):
                expired += 1
            else:
                skipped += 1
        except ConcurrentUpdateError:
            skipped += 1
            logger.warning("could not expire cash order %s, will retry next sweep", oid)
        except (DomainError, SQLAlchemyError):
            skipped += 1
            logger.exception("expiring cash order %s failed", oid)
    if expired:
        logger.info("expired %d cash holds", expired)
    return {"expired": expired, "skipped": skipped}
