from decimal import Decimal

from app.services.commission_service import compute_commission, FIXED, PERCENTAGE, NONE


def test_fixed_commission_is_per_ticket() -> None:
    assert compute_commission(FIXED, 200, 7500, 3) == 600


def test_percentage_commission_rounds_half_up_on_subtotal() -> None:
    # 10% of 2505 cents = 250.5 -> 251
    assert compute_commission(PERCENTAGE, 10, 2505, 1) == 251
    assert compute_commission(PERCENTAGE, Decimal("12.5"), 10000, 4) == 1250


def test_no_commission_type_or_zero_value_pays_nothing() -> None:
    assert compute_commission(NONE, 50, 10000, 2) == 0
    assert compute_commission(None, 50, 10000, 2) == 0
    assert compute_commission(FIXED, 0, 10000, 2) == 0
    assert compute_commission("BOGUS", 10, 10000, 2) == 0


def test_fixed_commission_with_fractional_cents() -> None:
    assert compute_commission(FIXED, Decimal("0.5"), 1000, 3) == 2


def test_fixed_300_cents_on_four_tickets() -> None:
    assert compute_commission(FIXED, 300, 5000, 4) == 1200


def test_ten_percent_of_fifty_dollars() -> None:
    assert compute_commission(PERCENTAGE, 10, 5000, 2) == 500
