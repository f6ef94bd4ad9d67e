"""Domain error codes for the cash ledger.

Services raise these; the API layer maps them to HTTP responses in one place
(see ``app.main``). Messages are user-safe.
"""

from enum import Enum


class ErrorCode(Enum):
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    TIER_MISMATCH = "TIER_MISMATCH"
    INSUFFICIENT_ALLOCATION = "INSUFFICIENT_ALLOCATION"
    NOT_YOUR_ASSOCIATE = "NOT_YOUR_ASSOCIATE"
    ORDER_EXPIRED = "ORDER_EXPIRED"
    STAFF_NOT_AUTHORIZED = "STAFF_NOT_AUTHORIZED"
    INVALID_STATUS = "INVALID_STATUS"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"
    OVERALLOCATION = "OVERALLOCATION"
    TIER_SOLD_OUT = "TIER_SOLD_OUT"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_ACTIVATION_CODE = "INVALID_ACTIVATION_CODE"


class DomainError(Exception):
    """Base domain error with code, HTTP status and user-safe message."""

    code: ErrorCode = ErrorCode.NOT_FOUND
    http_status: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND
    http_status = 404

    def __init__(self, entity: str, entity_id: str | None = None, message: str | None = None) -> None:
        super().__init__(message or f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class TierNotFoundError(NotFoundError):
    def __init__(self, tier_id: str) -> None:
        super().__init__("Ticket tier", tier_id, message=f"Ticket tier {tier_id} not found")


class UnauthorizedError(DomainError):
    code = ErrorCode.UNAUTHORIZED
    http_status = 403


class TierMismatchError(DomainError):
    code = ErrorCode.TIER_MISMATCH
    http_status = 400

    def __init__(self, message: str = "Tier does not belong to staff member's event") -> None:
        super().__init__(message)


class InsufficientAllocationError(DomainError):
    code = ErrorCode.INSUFFICIENT_ALLOCATION
    http_status = 409

    def __init__(self, available: int, requested: int) -> None:
        super().__init__(f"Insufficient allocation: has {available}, needs {requested}")
        self.available = available
        self.requested = requested


class NotYourAssociateError(DomainError):
    code = ErrorCode.NOT_YOUR_ASSOCIATE
    http_status = 403

    def __init__(self) -> None:
        super().__init__("Can only transfer to associates you have assigned")


class OrderExpiredError(DomainError):
    code = ErrorCode.ORDER_EXPIRED
    http_status = 410

    def __init__(self) -> None:
        super().__init__("Order has expired. Please place a new order.")


class StaffNotAuthorizedError(DomainError):
    code = ErrorCode.STAFF_NOT_AUTHORIZED
    http_status = 403

    def __init__(self) -> None:
        super().__init__("Staff member is not authorized to accept cash payments")


class InvalidStatusError(DomainError):
    code = ErrorCode.INVALID_STATUS
    http_status = 409

    def __init__(self, action: str, status: str) -> None:
        super().__init__(f"Cannot {action} order with status: {status}")
        self.status = status


class ConcurrentUpdateError(DomainError):
    code = ErrorCode.CONCURRENT_UPDATE
    http_status = 409

    def __init__(self) -> None:
        super().__init__("The record was modified by another request. Please retry.")


class OverallocationError(DomainError):
    code = ErrorCode.OVERALLOCATION
    http_status = 409

    def __init__(self, unallocated: int, requested: int) -> None:
        super().__init__(f"Only {unallocated} tickets left to allocate for this tier, requested {requested}")


class TierSoldOutError(DomainError):
    code = ErrorCode.TIER_SOLD_OUT
    http_status = 409

    def __init__(self, tier_name: str, available: int) -> None:
        super().__init__(f"Only {available} tickets available for {tier_name}")


class InvalidQuantityError(DomainError):
    code = ErrorCode.INVALID_QUANTITY
    http_status = 400

    def __init__(self) -> None:
        super().__init__("Quantity must be a positive integer")


class InvalidActivationCodeError(DomainError):
    code = ErrorCode.INVALID_ACTIVATION_CODE
    http_status = 400

    def __init__(self) -> None:
        super().__init__("Invalid activation code")
