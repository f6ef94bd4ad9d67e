from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

class StaffIn(BaseModel):
    name: str
    email: str = ""
    staffUserId: Optional[str] = None
    role: str = "STAFF"                 # STAFF|TEAM_MEMBER
    commissionType: str = "NONE"        # NONE|FIXED|PERCENTAGE
    commissionValue: Decimal = Field(default=Decimal("0"), ge=0)
    acceptCashInPerson: bool = False

class AssociateIn(BaseModel):
    name: str
    email: str = ""
    staffUserId: Optional[str] = None
    commissionType: str = "NONE"
    commissionValue: Decimal = Field(default=Decimal("0"), ge=0)
    acceptCashInPerson: bool = False

class CashSettingsIn(BaseModel):
    acceptCashInPerson: bool

class StaffOut(BaseModel):
    id: str
    eventId: str
    staffUserId: Optional[str] = None
    name: str
    email: str
    role: str
    assignedByStaffId: Optional[str] = None
    acceptCashInPerson: bool
    commissionType: str
    commissionValue: float
    ticketsSold: int
    cashCollectedCents: int
    commissionEarnedCents: int
