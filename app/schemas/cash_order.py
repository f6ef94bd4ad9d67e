from typing import List, Optional
from pydantic import BaseModel, Field

class CashTicketLine(BaseModel):
    tierId: str
    quantity: int = Field(gt=0)

class CashOrderCreate(BaseModel):
    eventId: str
    buyerName: str = Field(min_length=1)
    buyerPhone: str = Field(min_length=1)  # phone required, email optional for cash orders
    buyerEmail: Optional[str] = None
    tickets: List[CashTicketLine] = Field(min_length=1)

class CashOrderOut(BaseModel):
    orderId: str
    orderNumber: str
    totalCents: int
    holdExpiresAt: int
    ticketIds: List[str]
    message: str

class StaffActionIn(BaseModel):
    staffId: str

class ApproveOut(BaseModel):
    success: bool
    orderId: str
    ticketsActivated: int
    commission: int

class ActivationCodeOut(BaseModel):
    success: bool
    activationCode: str
    ticketCount: int
    orderId: str

class ActivateIn(BaseModel):
    activationCode: str = Field(pattern=r"^\d{4}$")
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None

class ActivateOut(BaseModel):
    success: bool
    orderId: str
    ticketCodes: List[str]
