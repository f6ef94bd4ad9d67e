from sqlalchemy import String, Integer, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class StaffTierAllocation(Base):
    __tablename__ = "staff_tier_allocations"
    __table_args__ = (
        UniqueConstraint("staff_id", "tier_id", name="uq_staff_tier_allocation"),
        CheckConstraint("remaining_quantity >= 0", name="ck_staff_tier_allocations_remaining_nonneg"),
        CheckConstraint("remaining_quantity = allocated_quantity - sold_quantity", name="ck_staff_tier_allocations_balance"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    staff_id: Mapped[str] = mapped_column(String(36), index=True)
    event_id: Mapped[str] = mapped_column(String(36), index=True)
    tier_id: Mapped[str] = mapped_column(String(36), index=True)

    allocated_quantity: Mapped[int] = mapped_column(Integer, default=0)
    sold_quantity: Mapped[int] = mapped_column(Integer, default=0)
    remaining_quantity: Mapped[int] = mapped_column(Integer, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __mapper_args__ = {"version_id_col": version}
