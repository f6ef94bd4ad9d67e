from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.security import ACCESS, subject_from_token
from app.models.user import User
from app.services.notification_service import CashOrderNotifier, CeleryCashOrderNotifier

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the bearer token. Every failure is a 401."""
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = subject_from_token(creds.credentials, ACCESS)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard


def get_cash_order_notifier() -> CashOrderNotifier:
    return CeleryCashOrderNotifier()
