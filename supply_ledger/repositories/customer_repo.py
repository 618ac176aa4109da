from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as ModelValidationError
from datetime import datetime, timezone
from typing import List, Optional

from supply_ledger.core.logging import get_logger
from supply_ledger.models.customer import CustomerCreate, CustomerUpdate, CustomerInDB
from supply_ledger.utils.validation import require_text, to_object_id

logger = get_logger(__name__)


class CustomerRepository:
    """Customer database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["customers"]

    async def create_customer(self, customer_data: CustomerCreate) -> CustomerInDB:
        """Create a new customer with zero balances."""
        fields = require_text({
            "name": customer_data.name,
            "mobile": customer_data.mobile,
            "village": customer_data.village,
        })
        customer = CustomerInDB(**fields, total_paid=0, pending_amount=0)

        await self.collection.insert_one(customer.to_document())
        logger.info("customer_created", customer_id=str(customer.id), name=customer.name)
        return customer

    async def list_customers(self) -> List[CustomerInDB]:
        """List customers ordered by name."""
        cursor = self.collection.find({}).sort("name", 1)
        docs = await cursor.to_list(None)
        return self._to_customers(docs)

    async def get_customer(self, customer_id: str, session=None) -> Optional[CustomerInDB]:
        """Get customer by ID."""
        oid = to_object_id(customer_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid}, session=session)
        if doc:
            return CustomerInDB(**doc)
        return None

    async def update_customer(self, customer_id: str, update_data: CustomerUpdate) -> Optional[CustomerInDB]:
        """Partial update of the editable fields."""
        oid = to_object_id(customer_id)
        if oid is None:
            return None

        updates = update_data.model_dump(exclude_unset=True, exclude_none=True)
        if not updates:
            return await self.get_customer(customer_id)

        text_fields = {key: value for key, value in updates.items() if key != "total_paid"}
        updates.update(require_text(text_fields))
        updates["updated_at"] = datetime.now(timezone.utc)
        result = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": updates},
            return_document=True
        )
        if result:
            return CustomerInDB(**result)
        return None

    async def set_balances(
        self,
        customer_id,
        *,
        total_paid: Optional[float] = None,
        pending_amount: Optional[float] = None,
        session=None
    ) -> bool:
        """Overwrite aggregate balances. Callers run this inside a transaction."""
        updates = {"updated_at": datetime.now(timezone.utc)}
        if total_paid is not None:
            updates["total_paid"] = total_paid
        if pending_amount is not None:
            updates["pending_amount"] = pending_amount

        result = await self.collection.update_one(
            {"_id": to_object_id(customer_id)},
            {"$set": updates},
            session=session
        )
        return result.matched_count > 0

    async def delete_customer(self, customer_id, session=None) -> bool:
        result = await self.collection.delete_one({"_id": to_object_id(customer_id)}, session=session)
        return result.deleted_count > 0

    def _to_customers(self, docs: List[dict]) -> List[CustomerInDB]:
        customers = []
        for doc in docs:
            try:
                customers.append(CustomerInDB(**doc))
            except ModelValidationError as exc:
                logger.warning(
                    "corrupt_customer_skipped",
                    customer_id=str(doc.get("_id")),
                    errors=exc.error_count()
                )
        return customers
