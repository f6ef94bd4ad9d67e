"""Staff notifications for new cash orders.

Delivery is best-effort. ``CashOrderNotifier`` is the seam the cash order
service talks to; the Celery-backed implementation only enqueues a task, the
worker then emails every cash-accepting staff member of the event.
"""
import logging
from abc import ABC, abstractmethod
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.event import Event
from app.models.event_staff import EventStaff
from app.models.order import Order
from app.services.email_service import queue_email

logger = logging.getLogger(__name__)


class CashOrderNotifier(ABC):
    @abstractmethod
    def notify_new_cash_order(self, order_id: str, event_id: str, buyer_name: str, total_cents: int) -> None:
        ...


class CeleryCashOrderNotifier(CashOrderNotifier):
    def notify_new_cash_order(self, order_id: str, event_id: str, buyer_name: str, total_cents: int) -> None:
        from app.tasks.jobs import notify_new_cash_order

        notify_new_cash_order.delay(order_id=order_id, event_id=event_id, buyer_name=buyer_name, total_cents=total_cents)


def _format_cents(cents: int) -> str:
    return f"${cents / 100:.2f}"


def send_new_cash_order_notifications(db: Session, order_id: str, event_id: str, buyer_name: str, total_cents: int) -> dict:
    """Email every active, cash-accepting staff member of the event. Runs in the worker."""
    order = db.get(Order, order_id)
    event = db.get(Event, event_id)
    staff = (
        db.query(EventStaff)
        .filter(
            EventStaff.event_id == event_id,
            EventStaff.accept_cash_in_person == True,
            EventStaff.is_active == True,
            EventStaff.email != "",
        )
        .all()
    )
    order_number = order.order_number if order else ""
    event_name = event.name if event else "your event"
    subject = f"New cash order {order_number} for {event_name}"
    link = f"{settings.CLIENT_BASE_URL}/staff/cash-orders" if settings.CLIENT_BASE_URL else ""
    body = (
        f"{buyer_name} placed a cash order ({_format_cents(total_cents)}).\n"
        f"Order #: {order_number}\n"
        f"The tickets are held for {settings.CASH_HOLD_MINUTES} minutes. Approve the payment or issue an activation code once you collect the cash.\n"
        + (f"\n{link}\n" if link else "")
    )
    for s in staff:
        queue_email(db, s.email, subject, body, related_order_number=order_number)
    logger.info("cash order %s: notified %d staff", order_number, len(staff))
    return {"notified": len(staff)}
