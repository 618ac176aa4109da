from typing import List
from fastapi import APIRouter, Depends, status

from supply_ledger.db.mongo import get_db
from supply_ledger.models.entry import EntryCreate, EntryUpdate, EntryResponse
from supply_ledger.repositories.entry_repo import EntryRepository
from supply_ledger.schemas.entry import ChargeQuoteRequest, ChargeQuoteResponse
from supply_ledger.services.charge_service import ChargeService
from supply_ledger.services.ledger_service import LedgerService

router = APIRouter()


@router.get("", response_model=List[EntryResponse])
async def list_entries(db = Depends(get_db)):
    """All entries, newest start first."""
    entries = await EntryRepository(db).list_entries()
    return [entry.to_response() for entry in entries]


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(entry_in: EntryCreate, db = Depends(get_db)):
    """Record a supply session; duration and amount are computed server-side."""
    entry = await LedgerService(db).add_entry(entry_in)
    return entry.to_response()


@router.post("/quote", response_model=ChargeQuoteResponse)
async def quote_charge(quote_in: ChargeQuoteRequest):
    """Preview the charge for a session without saving it."""
    quote = ChargeService().calculate(quote_in.start_at, quote_in.end_at, quote_in.crop_type)
    return ChargeQuoteResponse(
        crop_type=quote.crop_type,
        rate=quote.rate,
        duration_hours=quote.duration_hours,
        amount=quote.amount
    )


@router.patch("/{entry_id}", response_model=EntryResponse)
async def update_entry(entry_id: str, update: EntryUpdate, db = Depends(get_db)):
    entry = await LedgerService(db).update_entry(entry_id, update)
    return entry.to_response()


@router.delete("/{entry_id}")
async def delete_entry(entry_id: str, db = Depends(get_db)):
    """Delete an entry. Deleting an already deleted entry succeeds."""
    deleted = await LedgerService(db).delete_entry(entry_id)
    return {"success": True, "deleted": deleted}
