from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.allocation import AllocateIn, AllocateOut, RecordSaleIn, TransferIn, TransferOut
from app.services import allocation_service

router = APIRouter(tags=["allocations"])


@router.post("/staff/{staff_id}/allocations", response_model=AllocateOut)
def allocate(staff_id: str, body: AllocateIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return allocation_service.allocate_tier_to_staff(db, me, staff_id, body.tierId, body.quantity)


@router.post("/staff/{staff_id}/sales")
def record_sale(staff_id: str, body: RecordSaleIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return allocation_service.record_tier_sale(db, me, staff_id, body.tierId, body.quantity)


@router.post("/staff/{staff_id}/transfers", response_model=TransferOut)
def transfer(staff_id: str, body: TransferIn, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return allocation_service.transfer_tier_to_associate(db, me, staff_id, body.toStaffId, body.tierId, body.quantity)


@router.get("/staff/{staff_id}/allocations")
def staff_allocations(staff_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"items": allocation_service.get_staff_tier_allocations(db, me, staff_id)}


@router.get("/staff/{staff_id}/available-tiers")
def staff_available_tiers(staff_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"items": allocation_service.get_staff_available_tiers(db, me, staff_id)}


@router.get("/organizer/events/{event_id}/allocations")
def event_allocations(event_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"items": allocation_service.get_event_tier_allocations(db, me, event_id)}
