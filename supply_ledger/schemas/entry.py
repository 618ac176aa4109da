from datetime import datetime
from typing import List
from pydantic import BaseModel


class ChargeQuoteRequest(BaseModel):
    start_at: datetime
    end_at: datetime
    crop_type: str


class ChargeQuoteResponse(BaseModel):
    crop_type: str
    rate: float
    duration_hours: float
    amount: int


class CropTypesResponse(BaseModel):
    crop_types: List[str]
    default_crop_type: str
