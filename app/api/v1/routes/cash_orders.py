from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, get_cash_order_notifier
from app.models.user import User
from app.schemas.cash_order import (
    ActivateIn,
    ActivateOut,
    ActivationCodeOut,
    ApproveOut,
    CashOrderCreate,
    CashOrderOut,
    StaffActionIn,
)
from app.services import cash_order_service
from app.services.notification_service import CashOrderNotifier

router = APIRouter(tags=["cash-orders"])


@router.post("/public/cash-orders", response_model=CashOrderOut)
def create_cash_order(body: CashOrderCreate, db: Session = Depends(get_db),
                      notifier: CashOrderNotifier = Depends(get_cash_order_notifier)):
    return cash_order_service.create_cash_order(
        db,
        body.eventId,
        body.buyerName,
        body.buyerPhone,
        body.buyerEmail,
        [line.model_dump() for line in body.tickets],
        notifier=notifier,
    )


@router.post("/public/cash-orders/{order_id}/activate", response_model=ActivateOut)
def activate_cash_order(order_id: str, body: ActivateIn, db: Session = Depends(get_db)):
    return cash_order_service.activate_cash_order(db, order_id, body.activationCode, body.customerName, body.customerEmail)


@router.post("/cash-orders/{order_id}/approve", response_model=ApproveOut)
def approve_cash_order(order_id: str, body: StaffActionIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return cash_order_service.approve_cash_order(db, me, order_id, body.staffId)


@router.post("/cash-orders/{order_id}/activation-code", response_model=ActivationCodeOut)
def generate_activation_code(order_id: str, body: StaffActionIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return cash_order_service.generate_cash_activation_code(db, me, order_id, body.staffId)


@router.get("/cash-orders/pending")
def pending_cash_orders(eventId: str | None = None, staffId: str | None = None,
                        db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"items": cash_order_service.get_pending_cash_orders(db, me, event_id=eventId, staff_id=staffId)}


@router.get("/cash-orders/expired")
def expired_cash_orders(eventId: str, limit: int = 50, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"items": cash_order_service.get_expired_cash_orders(db, me, eventId, limit=limit)}
