from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

PENDING = "PENDING"
ACTIVE = "ACTIVE"
VALID = "VALID"
USED = "USED"
EXPIRED = "EXPIRED"

class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    event_id: Mapped[str] = mapped_column(String(36), index=True)
    order_id: Mapped[str] = mapped_column(String(36), index=True)
    ticket_tier_id: Mapped[str] = mapped_column(String(36), index=True)
    ticket_code: Mapped[str] = mapped_column(String(40), unique=True, index=True)

    status: Mapped[str] = mapped_column(String(20), default=PENDING)  # PENDING, ACTIVE, VALID, USED, EXPIRED
    price_cents: Mapped[int] = mapped_column(Integer, default=0)  # snapshot at order time

    attendee_name: Mapped[str] = mapped_column(String(200), default="")
    attendee_email: Mapped[str] = mapped_column(String(320), default="")
    attendee_phone: Mapped[str] = mapped_column(String(40), default="")

    activation_code: Mapped[str] = mapped_column(String(4), nullable=True)
    sold_by_staff_id: Mapped[str] = mapped_column(String(36), nullable=True)
    activated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
