import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import ConcurrentUpdateError, InvalidQuantityError
from app.db.transaction import run_atomic
from app.models.ticket_tier import TicketTier


def test_retries_whole_unit_after_concurrent_write(db, session_factory, world) -> None:
    attempts = []

    def unit():
        tier = db.get(TicketTier, world.ga.id)
        if not attempts:
            # another writer commits between our read and our write
            other = session_factory()
            rival = other.get(TicketTier, world.ga.id)
            rival.sold_count += 1
            other.commit()
            other.close()
        attempts.append(tier.version)
        tier.sold_count += 2
        return tier.sold_count

    assert run_atomic(db, unit) == 3
    assert len(attempts) == 2
    db.expire_all()
    tier = db.get(TicketTier, world.ga.id)
    assert tier.sold_count == 3
    assert tier.version == 3


def test_gives_up_after_retries(db) -> None:
    calls = []

    def unit():
        calls.append(1)
        raise StaleDataError("version mismatch")

    with pytest.raises(ConcurrentUpdateError):
        run_atomic(db, unit, retries=2)
    assert len(calls) == 3


def test_domain_errors_roll_back_and_propagate(db, world) -> None:
    def unit():
        tier = db.get(TicketTier, world.ga.id)
        tier.sold_count = 50
        db.flush()
        raise InvalidQuantityError()

    with pytest.raises(InvalidQuantityError):
        run_atomic(db, unit)
    db.expire_all()
    assert db.get(TicketTier, world.ga.id).sold_count == 0


class _DriverError(Exception):
    def __init__(self, pgcode):
        super().__init__(pgcode)
        self.pgcode = pgcode


def test_retries_after_database_deadlock(db) -> None:
    calls = []

    def unit():
        calls.append(1)
        if len(calls) == 1:
            raise OperationalError("UPDATE ticket_tiers", {}, _DriverError("40P01"))
        return "ok"

    assert run_atomic(db, unit) == "ok"
    assert len(calls) == 2


def test_other_operational_errors_propagate(db) -> None:
    calls = []

    def unit():
        calls.append(1)
        raise OperationalError("SELECT 1", {}, _DriverError("08006"))

    with pytest.raises(OperationalError):
        run_atomic(db, unit)
    assert len(calls) == 1
