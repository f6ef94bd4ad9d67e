import json
import uuid
from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog

GUEST = "guest"
SYSTEM = "system"


def log_audit(db: Session, actor_id: str, action: str, entity_type: str, entity_id: str, details: dict | None = None) -> None:
    """Stage an audit row in the caller's transaction; it commits or rolls back with the change it describes."""
    db.add(AuditLog(
        id=str(uuid.uuid4()),
        actor_id=actor_id or SYSTEM,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    ))


def audit_trail(db: Session, entity_type: str, entity_id: str, limit: int = 100) -> list[dict]:
    rows = (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "action": r.action,
            "actorId": r.actor_id,
            "details": json.loads(r.details_json or "{}"),
            "createdAt": r.created_at.isoformat() if r.created_at else None,
        }
        for r in rows
    ]
