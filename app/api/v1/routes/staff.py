from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, require_roles
from app.models.event_staff import EventStaff
from app.models.user import User, ADMIN, ORGANIZER
from app.schemas.staff import StaffIn, AssociateIn, CashSettingsIn, StaffOut
from app.services import staff_service

router = APIRouter(tags=["staff"])


def _staff_out(s: EventStaff) -> StaffOut:
    return StaffOut(
        id=s.id,
        eventId=s.event_id,
        staffUserId=s.staff_user_id,
        name=s.name or "",
        email=s.email or "",
        role=s.role,
        assignedByStaffId=s.assigned_by_staff_id,
        acceptCashInPerson=bool(s.accept_cash_in_person),
        commissionType=s.commission_type,
        commissionValue=float(s.commission_value or 0),
        ticketsSold=s.tickets_sold or 0,
        cashCollectedCents=s.cash_collected_cents or 0,
        commissionEarnedCents=s.commission_earned_cents or 0,
    )


@router.post("/organizer/events/{event_id}/staff", response_model=StaffOut)
def add_staff(event_id: str, body: StaffIn, db: Session = Depends(get_db), me: User = Depends(require_roles(ORGANIZER, ADMIN))):
    try:
        staff = staff_service.add_staff_member(
            db, me, event_id,
            name=body.name,
            email=body.email,
            staff_user_id=body.staffUserId,
            role=body.role,
            commission_type=body.commissionType,
            commission_value=body.commissionValue,
            accept_cash_in_person=body.acceptCashInPerson,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _staff_out(staff)


@router.get("/organizer/events/{event_id}/staff", response_model=list[StaffOut])
def list_staff(event_id: str, db: Session = Depends(get_db), me: User = Depends(require_roles(ORGANIZER, ADMIN))):
    return [_staff_out(s) for s in staff_service.list_event_staff(db, me, event_id)]


@router.post("/staff/{staff_id}/associates", response_model=StaffOut)
def assign_associate(staff_id: str, body: AssociateIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    try:
        associate = staff_service.assign_associate(
            db, me, staff_id,
            name=body.name,
            email=body.email,
            staff_user_id=body.staffUserId,
            commission_type=body.commissionType,
            commission_value=body.commissionValue,
            accept_cash_in_person=body.acceptCashInPerson,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _staff_out(associate)


@router.patch("/staff/{staff_id}/cash-settings", response_model=StaffOut)
def update_cash_settings(staff_id: str, body: CashSettingsIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _staff_out(staff_service.update_cash_settings(db, me, staff_id, body.acceptCashInPerson))
