"""Outbound email for staff notifications.

Every message is written to ``email_logs`` first, so a failed send is never
lost: the beat job resends queued and failed rows until
``EMAIL_MAX_ATTEMPTS`` is reached.
"""
from datetime import datetime, timezone
import logging
import smtplib
import uuid
from email.message import EmailMessage

import requests
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.email_log import EmailLog, QUEUED, SENT, FAILED, ABANDONED

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


def send_email(to_email: str, subject: str, body: str) -> None:
    """Deliver one plain-text message. SendGrid when an API key is set, SMTP otherwise."""
    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
    else:
        _send_via_smtp(to_email, subject, body)


def _send_via_smtp(to_email: str, subject: str, body: str) -> None:
    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str) -> None:
    r = requests.post(
        SENDGRID_URL,
        json={
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        },
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text[:200]}")


def _attempt(log: EmailLog) -> bool:
    log.attempts = (log.attempts or 0) + 1
    try:
        send_email(log.to_email, log.subject, log.body or "")
    except Exception as e:
        log.last_error = str(e)[:300]
        log.status = ABANDONED if log.attempts >= settings.EMAIL_MAX_ATTEMPTS else FAILED
        logger.warning("email %s to %s failed (attempt %d): %s", log.id, log.to_email, log.attempts, e)
        return False
    log.status = SENT
    log.sent_at = datetime.now(timezone.utc)
    log.last_error = ""
    return True


def queue_email(db: Session, to_email: str, subject: str, body: str, related_order_number: str = "") -> str:
    """Persist the message, then try it once right away."""
    log = EmailLog(
        id=str(uuid.uuid4()),
        to_email=to_email,
        subject=subject[:200],
        body=body,
        status=QUEUED,
        attempts=0,
        related_order_number=related_order_number,
    )
    db.add(log)
    db.commit()
    _attempt(log)
    db.commit()
    return log.id


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    pending = (
        db.query(EmailLog)
        .filter(EmailLog.status.in_([QUEUED, FAILED]), EmailLog.attempts < settings.EMAIL_MAX_ATTEMPTS)
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent = sum(1 for log in pending if _attempt(log))
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": len(pending) - sent}
