# refhub/utils/ids.py
from typing import Any

from bson import ObjectId
from fastapi import HTTPException, status


def as_oid(value: Any, field: str = "id") -> ObjectId:
    """Parse a client supplied id, 400 on garbage."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {field} format.")
    return ObjectId(str(value))


def maybe_oid(value: Any):
    """Best-effort coercion for ids read back from stored documents."""
    if value is None or isinstance(value, ObjectId):
        return value
    return ObjectId(value) if ObjectId.is_valid(str(value)) else value
