from decimal import Decimal

import pytest

from app.core.errors import NotFoundError, UnauthorizedError
from app.models.audit_log import AuditLog
from app.models.event_staff import ASSOCIATE, STAFF, TEAM_MEMBER
from app.services import staff_service


def test_organizer_adds_staff(db, world) -> None:
    staff = staff_service.add_staff_member(
        db, world.organizer, world.event.id,
        name="Gate", email="Gate@Example.com", role=STAFF,
        commission_type="PERCENTAGE", commission_value="7.5", accept_cash_in_person=True,
    )
    assert staff.organizer_id == world.organizer.id
    assert staff.email == "gate@example.com"
    assert staff.commission_value == Decimal("7.5")
    assert staff.tickets_sold == 0
    assert db.query(AuditLog).filter_by(action="staff.add", entity_id=staff.id).count() == 1


def test_only_organizer_adds_staff(db, world) -> None:
    with pytest.raises(UnauthorizedError):
        staff_service.add_staff_member(db, world.promoter_user, world.event.id, name="X", email="")


def test_add_staff_validates_role_and_commission(db, world) -> None:
    with pytest.raises(ValueError):
        staff_service.add_staff_member(db, world.organizer, world.event.id, name="X", email="", role=ASSOCIATE)
    with pytest.raises(ValueError):
        staff_service.add_staff_member(db, world.organizer, world.event.id, name="X", email="", commission_type="TIPS")
    with pytest.raises(ValueError):
        staff_service.add_staff_member(
            db, world.organizer, world.event.id, name="X", email="", commission_type="FIXED", commission_value=-1
        )


def test_add_staff_to_unknown_event(db, world) -> None:
    with pytest.raises(NotFoundError):
        staff_service.add_staff_member(db, world.organizer, "missing", name="X", email="")


def test_team_member_assigns_associate(db, world) -> None:
    associate = staff_service.assign_associate(db, world.promoter_user, world.promoter.id, name="Helper", email="")
    assert associate.role == ASSOCIATE
    assert associate.assigned_by_staff_id == world.promoter.id
    assert associate.event_id == world.event.id
    assert associate.organizer_id == world.organizer.id


def test_plain_staff_cannot_assign_associates(db, world) -> None:
    with pytest.raises(UnauthorizedError):
        staff_service.assign_associate(db, world.door_user, world.door.id, name="Helper", email="")


def test_update_own_cash_settings_only(db, world) -> None:
    updated = staff_service.update_cash_settings(db, world.door_user, world.door.id, False)
    assert updated.accept_cash_in_person is False
    with pytest.raises(UnauthorizedError):
        staff_service.update_cash_settings(db, world.organizer, world.door.id, True)


def test_list_event_staff(db, world) -> None:
    roles = [s.role for s in staff_service.list_event_staff(db, world.organizer, world.event.id)]
    assert sorted(roles) == sorted([STAFF, TEAM_MEMBER, ASSOCIATE])
