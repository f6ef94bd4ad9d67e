from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles
from app.models.user import User, ADMIN
from app.services import event_service
from app.services.audit_service import audit_trail
from app.tasks import worker_jobs

router = APIRouter(tags=["admin"])


@router.delete("/admin/events/{event_id}")
def admin_reset_event(event_id: str, db: Session = Depends(get_db), me: User = Depends(require_roles(ADMIN))):
    deleted = event_service.delete_event_cascade(db, me, event_id)
    return {"ok": True, "deleted": deleted}


@router.post("/admin/cash-orders/expire")
def admin_expire_cash_holds(db: Session = Depends(get_db), me: User = Depends(require_roles(ADMIN))):
    """Run the hold expiry sweep now instead of waiting for beat."""
    return worker_jobs.expire_cash_holds(db)


@router.get("/admin/audit/{entity_type}/{entity_id}")
def admin_audit_trail(entity_type: str, entity_id: str, db: Session = Depends(get_db),
                      me: User = Depends(require_roles(ADMIN))):
    return {"items": audit_trail(db, entity_type, entity_id)}
