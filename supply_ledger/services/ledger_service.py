"""
LedgerService - keeps customer balances in step with their supply entries.

Every mutation runs as one MongoDB transaction spanning the customer document
and the affected entries, so readers never see a half-applied change:

- add_entry:      insert unpaid entry, pending_amount += amount
- update_entry:   recompute amount, pending_amount += delta (unpaid only)
- delete_entry:   remove entry, pending_amount -= amount (unpaid only)
- record_payment: total_paid += payment, pending_amount -= payment,
                  settle unpaid entries oldest first
- delete_customer: remove the customer and all of their entries

pending_amount is clamped at zero in every path.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from supply_ledger.core.exceptions import (
    CustomerNotFound,
    EntryNotFound,
    InvalidAmount,
    ValidationError,
)
from supply_ledger.core.logging import get_logger
from supply_ledger.db.session import transaction
from supply_ledger.models.entry import EntryCreate, EntryUpdate, SupplyEntry
from supply_ledger.repositories.customer_repo import CustomerRepository
from supply_ledger.repositories.entry_repo import EntryRepository
from supply_ledger.services.charge_service import ChargeService
from supply_ledger.utils.dates import ensure_aware, hhmm
from supply_ledger.utils.validation import parse_object_id, require_text

logger = get_logger(__name__)


@dataclass
class PaymentResult:
    customer_id: str
    amount: float
    total_paid: float
    pending_amount: float
    settled_entry_ids: List[str] = field(default_factory=list)
    unapplied_amount: float = 0


def allocate_payment(entries: List[SupplyEntry], amount: float) -> Tuple[List[SupplyEntry], float]:
    """
    Walk unpaid entries oldest first and pick the ones the payment covers.

    An entry is settled only if the remaining payment covers it completely.
    The walk stops at the first entry it cannot cover; there is no
    partially-paid entry state. Returns (settled entries, unmatched amount).
    """
    settled = []
    remaining = amount
    for entry in entries:
        if remaining <= 0:
            break
        if entry.amount <= 0:
            logger.warning("payment_skipped_zero_entry", entry_id=str(entry.id), amount=entry.amount)
            continue
        if remaining >= entry.amount:
            settled.append(entry)
            remaining -= entry.amount
        else:
            break
    return settled, remaining


class LedgerService:
    def __init__(self, db: AsyncIOMotorDatabase, charges: Optional[ChargeService] = None):
        self.db = db
        self.customers = CustomerRepository(db)
        self.entries = EntryRepository(db)
        self.charges = charges or ChargeService()

    async def add_entry(self, entry_in: EntryCreate) -> SupplyEntry:
        """Record a new unpaid session and raise the customer's pending amount."""
        fields = require_text({"customer_id": entry_in.customer_id, "crop_type": entry_in.crop_type})
        customer_oid = parse_object_id(fields["customer_id"], "customer id")
        start_at = ensure_aware(entry_in.start_at)
        end_at = ensure_aware(entry_in.end_at)
        quote = self.charges.calculate(start_at, end_at, fields["crop_type"])

        async with transaction(self.db, "add_entry") as session:
            customer = await self.customers.get_customer(customer_oid, session=session)
            if customer is None:
                raise CustomerNotFound(fields["customer_id"])

            entry = SupplyEntry(
                customer_id=customer.id,
                customer_name=customer.name,
                start_at=start_at,
                end_at=end_at,
                start_time=hhmm(start_at),
                end_time=hhmm(end_at),
                duration_hours=quote.duration_hours,
                crop_type=quote.crop_type,
                amount=quote.amount,
                is_paid=False
            )
            await self.entries.insert_entry(entry, session=session)
            await self.customers.set_balances(
                customer.id,
                pending_amount=customer.pending_amount + entry.amount,
                session=session
            )

        logger.info(
            "entry_added",
            entry_id=str(entry.id),
            customer_id=str(customer.id),
            amount=entry.amount,
            duration_hours=round(entry.duration_hours, 2)
        )
        return entry

    async def update_entry(self, entry_id: str, update: EntryUpdate) -> SupplyEntry:
        """Reschedule an entry or change its crop and re-price it."""
        oid = parse_object_id(entry_id, "entry id")
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No fields provided to update.")

        async with transaction(self.db, "update_entry") as session:
            entry = await self.entries.get_entry(oid, session=session)
            if entry is None:
                raise EntryNotFound(entry_id)

            start_at = ensure_aware(changes.get("start_at", entry.start_at))
            end_at = ensure_aware(changes.get("end_at", entry.end_at))
            quote = self.charges.calculate(start_at, end_at, changes.get("crop_type", entry.crop_type))

            customer = await self.customers.get_customer(entry.customer_id, session=session)
            if customer is None:
                raise CustomerNotFound(str(entry.customer_id))

            fields = {
                "start_at": start_at,
                "end_at": end_at,
                "start_time": hhmm(start_at),
                "end_time": hhmm(end_at),
                "duration_hours": quote.duration_hours,
                "crop_type": quote.crop_type,
                "amount": quote.amount,
            }
            await self.entries.update_entry(oid, fields, session=session)

            delta = quote.amount - entry.amount
            if not entry.is_paid and delta != 0:
                await self.customers.set_balances(
                    customer.id,
                    pending_amount=max(0, customer.pending_amount + delta),
                    session=session
                )

        logger.info("entry_updated", entry_id=entry_id, old_amount=entry.amount, new_amount=quote.amount)
        return entry.model_copy(update=fields)

    async def delete_entry(self, entry_id: str) -> bool:
        """
        Delete an entry and release its amount from the customer's pending balance.

        Deleting an entry that no longer exists is a successful no-op.
        Returns True when something was deleted.
        """
        oid = parse_object_id(entry_id, "entry id")

        async with transaction(self.db, "delete_entry") as session:
            doc = await self.entries.get_raw(oid, session=session)
            if doc is None:
                logger.warning("delete_entry_already_gone", entry_id=entry_id)
                return False

            await self.entries.delete_entry(oid, session=session)

            amount = doc.get("amount")
            if not isinstance(amount, (int, float)) or isinstance(amount, bool):
                amount = 0
            if not doc.get("is_paid", False):
                customer = await self.customers.get_customer(doc.get("customer_id"), session=session)
                if customer is not None:
                    await self.customers.set_balances(
                        customer.id,
                        pending_amount=max(0, customer.pending_amount - amount),
                        session=session
                    )
                else:
                    # Balance of a vanished customer cannot be corrected here
                    logger.warning(
                        "delete_entry_customer_missing",
                        entry_id=entry_id,
                        customer_id=str(doc.get("customer_id"))
                    )

        logger.info("entry_deleted", entry_id=entry_id, amount=amount, was_paid=bool(doc.get("is_paid", False)))
        return True

    async def record_payment(self, customer_id: str, amount: float) -> PaymentResult:
        """Apply a payment to the customer's balance and settle entries oldest first."""
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise InvalidAmount(f"Payment amount must be a number, got {amount!r}.")
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidAmount(f"Payment amount must be positive and finite, got {amount!r}.")
        oid = parse_object_id(customer_id, "customer id")

        async with transaction(self.db, "record_payment") as session:
            customer = await self.customers.get_customer(oid, session=session)
            if customer is None:
                raise CustomerNotFound(customer_id)

            new_total_paid = customer.total_paid + amount
            new_pending = max(0, customer.pending_amount - amount)
            await self.customers.set_balances(
                oid,
                total_paid=new_total_paid,
                pending_amount=new_pending,
                session=session
            )

            unpaid = await self.entries.list_unpaid_for_customer(oid, session=session)
            settled, remaining = allocate_payment(unpaid, amount)
            settled_ids = [entry.id for entry in settled]
            await self.entries.mark_paid(settled_ids, session=session)

        if remaining > 0:
            # Either a partial cover of the oldest open entry or an overpayment;
            # both only reduce the aggregate balance.
            logger.warning(
                "payment_partially_applied",
                customer_id=customer_id,
                unapplied=remaining,
                pending_amount=new_pending
            )
        logger.info(
            "payment_recorded",
            customer_id=customer_id,
            amount=amount,
            settled_entries=len(settled_ids),
            total_paid=new_total_paid,
            pending_amount=new_pending
        )
        return PaymentResult(
            customer_id=customer_id,
            amount=amount,
            total_paid=new_total_paid,
            pending_amount=new_pending,
            settled_entry_ids=[str(entry_id) for entry_id in settled_ids],
            unapplied_amount=remaining
        )

    async def delete_customer(self, customer_id: str) -> bool:
        """Delete a customer together with every entry that references it."""
        oid = parse_object_id(customer_id, "customer id")

        async with transaction(self.db, "delete_customer") as session:
            customer = await self.customers.get_customer(oid, session=session)
            if customer is None:
                logger.warning("delete_customer_not_found", customer_id=customer_id)
                return False
            deleted_entries = await self.entries.delete_for_customer(oid, session=session)
            await self.customers.delete_customer(oid, session=session)

        logger.info("customer_deleted", customer_id=customer_id, deleted_entries=deleted_entries)
        return True
