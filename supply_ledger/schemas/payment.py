from typing import List
from pydantic import BaseModel


class PaymentCreate(BaseModel):
    """Request body to record a payment. Positivity is checked by the ledger service."""
    amount: float


class PaymentResponse(BaseModel):
    customer_id: str
    amount: float
    total_paid: float
    pending_amount: float
    settled_entry_ids: List[str]
    unapplied_amount: float
