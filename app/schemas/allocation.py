from pydantic import BaseModel, Field

class AllocateIn(BaseModel):
    tierId: str
    quantity: int = Field(gt=0)

class RecordSaleIn(BaseModel):
    tierId: str
    quantity: int = Field(gt=0)

class TransferIn(BaseModel):
    toStaffId: str
    tierId: str
    quantity: int = Field(gt=0)

class AllocateOut(BaseModel):
    allocationId: str
    added: int

class TransferOut(BaseModel):
    success: bool
    transferred: int
