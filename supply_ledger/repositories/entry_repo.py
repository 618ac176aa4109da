"""
EntryRepository - stores individual water-supply sessions.

Reads never fail because of a single bad document: anything that does not
validate as a SupplyEntry is logged and left out of the result.
"""

from typing import List, Optional
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as ModelValidationError

from supply_ledger.core.logging import get_logger
from supply_ledger.models.entry import SupplyEntry
from supply_ledger.utils.validation import to_object_id

logger = get_logger(__name__)


class EntryRepository:
    """Repository for supply entries."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["entries"]

    async def insert_entry(self, entry: SupplyEntry, session=None) -> SupplyEntry:
        doc = entry.to_document()
        result = await self.collection.insert_one(doc, session=session)
        entry.id = result.inserted_id
        return entry

    async def get_entry(self, entry_id: str, session=None) -> Optional[SupplyEntry]:
        """Get an entry by ID; corrupt or missing documents give None."""
        oid = to_object_id(entry_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid}, session=session)
        if not doc:
            return None
        entries = self._to_entries([doc])
        return entries[0] if entries else None

    async def get_raw(self, entry_id, session=None) -> Optional[dict]:
        """Stored document as-is, without validation."""
        return await self.collection.find_one({"_id": to_object_id(entry_id)}, session=session)

    async def list_entries(self) -> List[SupplyEntry]:
        """All entries, newest start first."""
        return await self.list_filtered()

    async def list_customer_entries(self, customer_id: str) -> List[SupplyEntry]:
        """History for one customer, newest start first."""
        oid = to_object_id(customer_id)
        if oid is None:
            return []
        return await self.list_filtered(customer_id=oid)

    async def list_filtered(
        self,
        customer_id=None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[SupplyEntry]:
        """Entries whose start falls in [start_from, start_to], newest first."""
        cursor = self.collection.find(
            self.build_filter(customer_id, start_from, start_to)
        ).sort("start_at", -1)
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(None)
        return self._to_entries(docs)

    async def list_unpaid_for_customer(self, customer_id, session=None) -> List[SupplyEntry]:
        """Unpaid entries, oldest start first (payment application order)."""
        cursor = self.collection.find(
            {"customer_id": to_object_id(customer_id), "is_paid": False},
            session=session
        ).sort("start_at", 1)
        docs = await cursor.to_list(None)
        return self._to_entries(docs)

    async def update_entry(self, entry_id, fields: dict, session=None) -> bool:
        fields = {**fields, "updated_at": datetime.now(timezone.utc)}
        result = await self.collection.update_one(
            {"_id": to_object_id(entry_id)},
            {"$set": fields},
            session=session
        )
        return result.matched_count > 0

    async def mark_paid(self, entry_ids: list, session=None) -> int:
        if not entry_ids:
            return 0
        result = await self.collection.update_many(
            {"_id": {"$in": [to_object_id(entry_id) for entry_id in entry_ids]}},
            {"$set": {"is_paid": True, "updated_at": datetime.now(timezone.utc)}},
            session=session
        )
        return result.modified_count

    async def delete_entry(self, entry_id, session=None) -> bool:
        result = await self.collection.delete_one({"_id": to_object_id(entry_id)}, session=session)
        return result.deleted_count > 0

    async def delete_for_customer(self, customer_id, session=None) -> int:
        result = await self.collection.delete_many(
            {"customer_id": to_object_id(customer_id)},
            session=session
        )
        return result.deleted_count

    # ===== HELPERS =====

    @staticmethod
    def build_filter(
        customer_id=None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None
    ) -> dict:
        query: dict = {}
        if customer_id is not None:
            query["customer_id"] = to_object_id(customer_id)
        start_range = {}
        if start_from is not None:
            start_range["$gte"] = start_from
        if start_to is not None:
            start_range["$lte"] = start_to
        if start_range:
            query["start_at"] = start_range
        return query

    def _to_entries(self, docs: List[dict]) -> List[SupplyEntry]:
        entries = []
        for doc in docs:
            try:
                entries.append(SupplyEntry(**doc))
            except ModelValidationError as exc:
                logger.warning(
                    "corrupt_entry_skipped",
                    entry_id=str(doc.get("_id")),
                    errors=exc.error_count()
                )
        return entries
