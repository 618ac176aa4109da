from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from supply_ledger.models.base import MongoModel


class CustomerBase(BaseModel):
    """Base customer schema."""
    name: str = Field(..., max_length=100)
    mobile: str = Field(..., max_length=20)
    village: str = Field(..., max_length=100)


class CustomerCreate(CustomerBase):
    """Customer creation schema. Blank values are rejected by the repository."""
    pass


class CustomerUpdate(BaseModel):
    """
    Customer update schema.

    total_paid is an explicit correction; pending_amount is owned by the
    ledger service and cannot be edited directly.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    mobile: Optional[str] = Field(None, min_length=1, max_length=20)
    village: Optional[str] = Field(None, min_length=1, max_length=100)
    total_paid: Optional[float] = Field(None, ge=0)


class CustomerResponse(CustomerBase):
    """Customer response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    total_paid: float
    pending_amount: float
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )


class CustomerInDB(MongoModel):
    """Customer database schema."""
    name: str
    mobile: str
    village: str
    total_paid: float = 0
    pending_amount: float = 0

    def to_response(self) -> CustomerResponse:
        return CustomerResponse(
            id=str(self.id),
            name=self.name,
            mobile=self.mobile,
            village=self.village,
            total_paid=self.total_paid,
            pending_amount=self.pending_amount,
            created_at=self.created_at,
            updated_at=self.updated_at
        )
