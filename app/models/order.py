from sqlalchemy import String, Integer, BigInteger, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

PENDING_CASH_PAYMENT = "PENDING_CASH_PAYMENT"
CODE_ISSUED_AWAITING_ACTIVATION = "CODE_ISSUED_AWAITING_ACTIVATION"
COMPLETED = "COMPLETED"
EXPIRED = "EXPIRED"
REFUNDED = "REFUNDED"

class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    order_number: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    event_id: Mapped[str] = mapped_column(String(36), index=True)
    guest_contact_id: Mapped[str] = mapped_column(String(36), index=True)

    buyer_name: Mapped[str] = mapped_column(String(200), default="")
    buyer_email: Mapped[str] = mapped_column(String(320), default="")
    buyer_phone: Mapped[str] = mapped_column(String(40), default="")

    status: Mapped[str] = mapped_column(String(40), default=PENDING_CASH_PAYMENT, index=True)
    payment_method: Mapped[str] = mapped_column(String(20), default="CASH")

    subtotal_cents: Mapped[int] = mapped_column(Integer, default=0)
    platform_fee_cents: Mapped[int] = mapped_column(Integer, default=0)
    processing_fee_cents: Mapped[int] = mapped_column(Integer, default=0)
    total_cents: Mapped[int] = mapped_column(Integer, default=0)

    hold_expires_at: Mapped[int] = mapped_column(BigInteger, nullable=True, index=True)  # epoch ms

    approved_by_staff_id: Mapped[str] = mapped_column(String(36), nullable=True)
    sold_by_staff_id: Mapped[str] = mapped_column(String(36), nullable=True, index=True)
    staff_commission_cents: Mapped[int] = mapped_column(Integer, default=0)

    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    code_issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    expired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __mapper_args__ = {"version_id_col": version}
