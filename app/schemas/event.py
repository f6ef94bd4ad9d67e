from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class EventIn(BaseModel):
    name: str
    location: str = ""
    startsAt: Optional[datetime] = None

class EventOut(BaseModel):
    id: str
    organizerId: str
    name: str
    location: str = ""
    status: str

class TierIn(BaseModel):
    name: str
    unitPriceCents: int = Field(ge=0)
    totalQuantity: int = Field(gt=0)

class TierOut(BaseModel):
    id: str
    eventId: str
    name: str
    unitPriceCents: int
    totalQuantity: int
    soldCount: int
    available: int
