from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Boolean, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

STAFF = "STAFF"
TEAM_MEMBER = "TEAM_MEMBER"
ASSOCIATE = "ASSOCIATE"
STAFF_ROLES = (STAFF, TEAM_MEMBER, ASSOCIATE)

class EventStaff(Base):
    __tablename__ = "event_staff"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    event_id: Mapped[str] = mapped_column(String(36), index=True)
    organizer_id: Mapped[str] = mapped_column(String(36), index=True)
    staff_user_id: Mapped[str] = mapped_column(String(36), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    email: Mapped[str] = mapped_column(String(320), default="")

    role: Mapped[str] = mapped_column(String(20), default=STAFF)  # STAFF|TEAM_MEMBER|ASSOCIATE
    assigned_by_staff_id: Mapped[str] = mapped_column(String(36), nullable=True, index=True)
    accept_cash_in_person: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    commission_type: Mapped[str] = mapped_column(String(12), default="NONE")  # NONE|FIXED|PERCENTAGE
    # FIXED: cents per ticket, PERCENTAGE: percent of order subtotal
    commission_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)

    tickets_sold: Mapped[int] = mapped_column(Integer, default=0)
    cash_collected_cents: Mapped[int] = mapped_column(Integer, default=0)
    commission_earned_cents: Mapped[int] = mapped_column(Integer, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __mapper_args__ = {"version_id_col": version}
