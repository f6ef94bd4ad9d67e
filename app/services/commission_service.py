from decimal import Decimal, ROUND_HALF_UP

NONE = "NONE"
FIXED = "FIXED"
PERCENTAGE = "PERCENTAGE"
COMMISSION_TYPES = (NONE, FIXED, PERCENTAGE)


def compute_commission(commission_type: str | None, commission_value, subtotal_cents: int, ticket_count: int) -> int:
    """Staff commission in cents for one order. Pure function.

    FIXED: ``commission_value`` cents per ticket.
    PERCENTAGE: ``commission_value`` percent of the order subtotal, rounded
    half-up once on the order total.
    """
    if not commission_value or commission_type not in (FIXED, PERCENTAGE):
        return 0
    value = Decimal(str(commission_value))
    if commission_type == FIXED:
        return int((value * ticket_count).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((Decimal(subtotal_cents) * value / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
