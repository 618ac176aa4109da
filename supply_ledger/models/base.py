"""
Shared pieces for documents stored in MongoDB.

Ids stay `bson.ObjectId` inside the application and render as 24-char hex
strings in JSON.
"""
from datetime import datetime, timezone
from typing import Annotated, Any

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, PlainValidator, WithJsonSchema


def _coerce_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"not a valid ObjectId: {value!r}")


PyObjectId = Annotated[
    ObjectId,
    PlainValidator(_coerce_object_id),
    PlainSerializer(str, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": "^[0-9a-f]{24}$"}),
]


class MongoModel(BaseModel):
    """Stored document keyed by `_id`, with creation and modification times."""
    id: PyObjectId = Field(default_factory=ObjectId, alias="_id")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True
    )

    def to_document(self) -> dict:
        """Mapping for insert_one; ids and datetimes stay native BSON types."""
        return self.model_dump(by_alias=True)
