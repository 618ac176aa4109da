from dataclasses import asdict
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from supply_ledger.db.mongo import get_db
from supply_ledger.models.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from supply_ledger.models.entry import EntryResponse
from supply_ledger.repositories.customer_repo import CustomerRepository
from supply_ledger.repositories.entry_repo import EntryRepository
from supply_ledger.schemas.payment import PaymentCreate, PaymentResponse
from supply_ledger.services.ledger_service import LedgerService

router = APIRouter()


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(customer_data: CustomerCreate, db = Depends(get_db)):
    """Add a customer with zero balances."""
    customer = await CustomerRepository(db).create_customer(customer_data)
    return customer.to_response()


@router.get("", response_model=List[CustomerResponse])
async def list_customers(db = Depends(get_db)):
    """List customers ordered by name."""
    customers = await CustomerRepository(db).list_customers()
    return [customer.to_response() for customer in customers]


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: str, db = Depends(get_db)):
    customer = await CustomerRepository(db).get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer.to_response()


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(customer_id: str, update_data: CustomerUpdate, db = Depends(get_db)):
    """Edit name/mobile/village. Existing entries keep the old customer name."""
    customer = await CustomerRepository(db).update_customer(customer_id, update_data)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer.to_response()


@router.get("/{customer_id}/entries", response_model=List[EntryResponse])
async def get_customer_history(customer_id: str, db = Depends(get_db)):
    """Supply history for one customer, newest first."""
    entries = await EntryRepository(db).list_customer_entries(customer_id)
    return [entry.to_response() for entry in entries]


@router.post("/{customer_id}/payments", response_model=PaymentResponse)
async def record_payment(customer_id: str, payment: PaymentCreate, db = Depends(get_db)):
    """Record a payment and settle unpaid entries oldest first."""
    result = await LedgerService(db).record_payment(customer_id, payment.amount)
    return PaymentResponse(**asdict(result))


@router.delete("/{customer_id}")
async def delete_customer(customer_id: str, db = Depends(get_db)):
    """Delete a customer and all of their entries."""
    deleted = await LedgerService(db).delete_customer(customer_id)
    return {"success": True, "deleted": deleted}
