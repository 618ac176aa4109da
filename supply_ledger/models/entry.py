"""
Supply entry model - one billable water-supply session.

Design principles:
- Belongs to exactly one customer (customer_id)
- customer_name is a snapshot taken when the entry is created
- amount = round_half_up(duration_hours * hourly rate of crop_type)
- Always created unpaid; flipped to paid only by payment application
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from supply_ledger.models.base import MongoModel, PyObjectId


class EntryCreate(BaseModel):
    """Request to record a supply session. Duration and amount are derived."""
    customer_id: str
    start_at: datetime
    end_at: datetime
    crop_type: str


class EntryUpdate(BaseModel):
    """Reschedule an entry or change its crop; amount is recomputed."""
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    crop_type: Optional[str] = Field(None, min_length=1)


class EntryResponse(BaseModel):
    """Supply entry response."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    customer_id: str
    customer_name: str
    start_at: datetime
    end_at: datetime
    start_time: str
    end_time: str
    duration_hours: float
    crop_type: str
    amount: int
    is_paid: bool
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class SupplyEntry(MongoModel):
    """
    Stored supply session.

    Invariants:
    - end_at > start_at
    - duration_hours == (end_at - start_at) in hours
    - is_paid only changes through payment application
    """
    customer_id: PyObjectId
    customer_name: str
    start_at: datetime
    end_at: datetime
    start_time: str  # HH:MM, business timezone
    end_time: str
    duration_hours: float
    crop_type: str
    amount: int
    is_paid: bool = False

    @property
    def status(self) -> str:
        return "Paid" if self.is_paid else "Pending"

    def to_response(self) -> EntryResponse:
        return EntryResponse(
            id=str(self.id),
            customer_id=str(self.customer_id),
            customer_name=self.customer_name,
            start_at=self.start_at,
            end_at=self.end_at,
            start_time=self.start_time,
            end_time=self.end_time,
            duration_hours=self.duration_hours,
            crop_type=self.crop_type,
            amount=self.amount,
            is_paid=self.is_paid,
            created_at=self.created_at
        )
