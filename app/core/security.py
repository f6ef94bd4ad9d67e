from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"
ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _encode(subject: str, token_type: str, lifetime: timedelta) -> str:
    payload = {"sub": subject, "type": token_type, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    return _encode(subject, ACCESS, timedelta(minutes=minutes))


def create_refresh_token(subject: str, expires_days: int | None = None) -> str:
    days = settings.REFRESH_TOKEN_EXPIRE_DAYS if expires_days is None else expires_days
    return _encode(subject, REFRESH, timedelta(days=days))


def subject_from_token(token: str, token_type: str) -> str | None:
    """User id carried by a valid token of ``token_type``; None for anything else."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload.get("sub")
