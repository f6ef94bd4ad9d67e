"""Staff tier allocation ledger.

Each (staff, tier) pair has at most one allocation row. Every mutation keeps
``remaining_quantity == allocated_quantity - sold_quantity`` and runs as one
transaction through ``run_atomic`` so a version conflict retries the whole
unit instead of leaving one leg applied.
"""
import logging
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from app.core.config import settings
from app.core.errors import (
    InsufficientAllocationError,
    InvalidQuantityError,
    NotFoundError,
    NotYourAssociateError,
    OverallocationError,
    TierMismatchError,
    TierNotFoundError,
    UnauthorizedError,
)
from app.db.transaction import run_atomic
from app.models.event_staff import EventStaff
from app.models.staff_allocation import StaffTierAllocation
from app.models.ticket_tier import TicketTier
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.staff_service import can_act_for_staff, get_staff_or_404, is_admin, require_event_organizer

logger = logging.getLogger(__name__)


def _check_quantity(quantity: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise InvalidQuantityError()


def _get_allocation(db: Session, staff_id: str, tier_id: str) -> StaffTierAllocation | None:
    return db.execute(
        select(StaffTierAllocation)
        .where(StaffTierAllocation.staff_id == staff_id, StaffTierAllocation.tier_id == tier_id)
        .with_for_update()
    ).scalar_one_or_none()


def _credit_allocation(db: Session, staff_id: str, event_id: str, tier_id: str, quantity: int) -> StaffTierAllocation:
    """Create-or-increment the (staff, tier) row by ``quantity`` unsold units."""
    allocation = _get_allocation(db, staff_id, tier_id)
    if allocation:
        allocation.allocated_quantity += quantity
        allocation.remaining_quantity += quantity
        return allocation
    allocation = StaffTierAllocation(
        id=str(uuid.uuid4()),
        staff_id=staff_id,
        event_id=event_id,
        tier_id=tier_id,
        allocated_quantity=quantity,
        sold_quantity=0,
        remaining_quantity=quantity,
    )
    db.add(allocation)
    return allocation


def allocate_tier_to_staff(db: Session, actor: User, staff_id: str, tier_id: str, quantity: int) -> dict:
    _check_quantity(quantity)

    def unit():
        staff = get_staff_or_404(db, staff_id)
        if staff.organizer_id != actor.id and not is_admin(actor):
            raise UnauthorizedError("Only the event organizer can allocate tickets")
        tier = db.execute(select(TicketTier).where(TicketTier.id == tier_id).with_for_update()).scalar_one_or_none()
        if not tier:
            raise TierNotFoundError(tier_id)
        if tier.event_id != staff.event_id:
            raise TierMismatchError()

        if not settings.ALLOW_OVERALLOCATION:
            already = db.query(func.coalesce(func.sum(StaffTierAllocation.allocated_quantity), 0)).filter(
                StaffTierAllocation.tier_id == tier_id
            ).scalar()
            unallocated = tier.total_quantity - int(already or 0)
            if quantity > unallocated:
                raise OverallocationError(max(unallocated, 0), quantity)

        allocation = _credit_allocation(db, staff.id, tier.event_id, tier.id, quantity)
        db.flush()
        log_audit(db, actor.id, "allocation.allocate", "allocation", allocation.id, {"staffId": staff.id, "tierId": tier.id, "quantity": quantity})
        return {"allocationId": allocation.id, "added": quantity}

    result = run_atomic(db, unit)
    logger.info("allocated %d of tier %s to staff %s", quantity, tier_id, staff_id)
    return result


def record_tier_sale(db: Session, actor: User, staff_id: str, tier_id: str, quantity: int) -> dict:
    _check_quantity(quantity)

    def unit():
        staff = get_staff_or_404(db, staff_id, for_update=True)
        if not can_act_for_staff(actor, staff):
            raise UnauthorizedError("Unauthorized to record sales for this staff member")
        allocation = _get_allocation(db, staff_id, tier_id)
        if not allocation:
            raise NotFoundError("Allocation", message="No allocation found for this staff member and tier")
        if allocation.remaining_quantity < quantity:
            raise InsufficientAllocationError(allocation.remaining_quantity, quantity)

        allocation.sold_quantity += quantity
        allocation.remaining_quantity -= quantity
        staff.tickets_sold = (staff.tickets_sold or 0) + quantity
        log_audit(db, actor.id, "allocation.sale", "allocation", allocation.id, {"staffId": staff_id, "quantity": quantity})
        return {"success": True}

    return run_atomic(db, unit)


def transfer_tier_to_associate(db: Session, actor: User, from_staff_id: str, to_staff_id: str, tier_id: str, quantity: int) -> dict:
    """Move unsold units from a team member to an associate they assigned."""
    _check_quantity(quantity)

    def unit():
        team_member = get_staff_or_404(db, from_staff_id)
        associate = get_staff_or_404(db, to_staff_id)
        if team_member.staff_user_id != actor.id and team_member.organizer_id != actor.id and not is_admin(actor):
            raise UnauthorizedError("Only the team member can transfer their tickets")
        if associate.assigned_by_staff_id != team_member.id:
            raise NotYourAssociateError()

        source = _get_allocation(db, from_staff_id, tier_id)
        if not source:
            raise NotFoundError("Allocation", message="Team member has no allocation for this tier")
        if source.remaining_quantity < quantity:
            raise InsufficientAllocationError(source.remaining_quantity, quantity)

        source.allocated_quantity -= quantity
        source.remaining_quantity -= quantity
        destination = _credit_allocation(db, associate.id, associate.event_id, tier_id, quantity)
        db.flush()
        log_audit(db, actor.id, "allocation.transfer", "allocation", source.id, {
            "fromStaffId": from_staff_id, "toStaffId": to_staff_id, "toAllocationId": destination.id, "quantity": quantity,
        })
        return {"success": True, "transferred": quantity}

    result = run_atomic(db, unit)
    logger.info("transferred %d of tier %s from staff %s to %s", quantity, tier_id, from_staff_id, to_staff_id)
    return result


def _tier_summary(tier: TicketTier | None) -> dict | None:
    if not tier:
        return None
    return {"id": tier.id, "name": tier.name, "priceCents": tier.unit_price_cents}


def _allocation_out(a: StaffTierAllocation) -> dict:
    return {
        "id": a.id,
        "staffId": a.staff_id,
        "eventId": a.event_id,
        "tierId": a.tier_id,
        "allocatedQuantity": a.allocated_quantity,
        "soldQuantity": a.sold_quantity,
        "remainingQuantity": a.remaining_quantity,
    }


def get_staff_tier_allocations(db: Session, actor: User, staff_id: str) -> list[dict]:
    staff = get_staff_or_404(db, staff_id)
    if not can_act_for_staff(actor, staff):
        raise UnauthorizedError("Unauthorized to view this staff member's allocations")
    allocations = db.query(StaffTierAllocation).filter(StaffTierAllocation.staff_id == staff_id).all()
    return [{**_allocation_out(a), "tier": _tier_summary(db.get(TicketTier, a.tier_id))} for a in allocations]


def get_event_tier_allocations(db: Session, actor: User, event_id: str) -> list[dict]:
    require_event_organizer(db, actor, event_id)
    allocations = db.query(StaffTierAllocation).filter(StaffTierAllocation.event_id == event_id).all()
    items = []
    for a in allocations:
        staff = db.get(EventStaff, a.staff_id)
        items.append({
            **_allocation_out(a),
            "staff": {"id": staff.id, "name": staff.name, "email": staff.email, "role": staff.role} if staff else None,
            "tier": _tier_summary(db.get(TicketTier, a.tier_id)),
        })
    return items


def get_staff_available_tiers(db: Session, actor: User, staff_id: str) -> list[dict]:
    staff = get_staff_or_404(db, staff_id)
    if not can_act_for_staff(actor, staff):
        raise UnauthorizedError("Unauthorized to view this staff member's allocations")
    allocations = db.query(StaffTierAllocation).filter(
        StaffTierAllocation.staff_id == staff_id,
        StaffTierAllocation.remaining_quantity > 0,
    ).all()
    items = []
    for a in allocations:
        tier = db.get(TicketTier, a.tier_id)
        items.append({
            "tierId": a.tier_id,
            "tierName": tier.name if tier else "Unknown",
            "remainingQuantity": a.remaining_quantity,
        })
    return items
