# refhub/controllers/business_customer_controller.py
import logging
import re
from typing import List, Optional

from fastapi import HTTPException
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.mongo import MongoManager
from ..models.customer_model import BusinessCustomerModel
from ..schemas.customer_schema import (
    BulkImportResponse,
    CustomerCreateRequest,
    CustomerOut,
    CustomerUpdateRequest,
    DeleteCustomerResponse,
)
from ..utils.datetime_utils import now_utc
from ..utils.ids import as_oid


def customer_out(doc: dict) -> CustomerOut:
    fields = {k: v for k, v in doc.items() if k in CustomerOut.model_fields}
    fields["id"] = doc["_id"]
    return CustomerOut(**fields)


def _owned(business: dict, customer_id: str) -> dict:
    return {"_id": as_oid(customer_id, "customer id"), "business_id": business["_id"]}


# -----------------------------
# Listing
# -----------------------------
async def list_customers(
    db: MongoManager,
    business: dict,
    status: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
) -> List[CustomerOut]:
    query = {"business_id": business["_id"]}
    if status:
        query["status"] = status
    if tag:
        query["tags"] = tag
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"name": pattern}, {"email": pattern}, {"phone": pattern}]

    cursor = db.business_customers.find(query).sort([("created_at", -1), ("_id", -1)])
    return [customer_out(doc) async for doc in cursor]


async def get_customer(db: MongoManager, business: dict, customer_id: str) -> CustomerOut:
    doc = await db.business_customers.find_one(_owned(business, customer_id))
    if not doc:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer_out(doc)


# -----------------------------
# Create / import
# -----------------------------
async def create_customer(db: MongoManager, business: dict, payload: CustomerCreateRequest) -> CustomerOut:
    doc = BusinessCustomerModel(business_id=business["_id"], **payload.model_dump()).model_dump(
        by_alias=True, exclude_none=True
    )
    try:
        result = await db.business_customers.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Customer with this email already exists")
    doc["_id"] = result.inserted_id

    logging.info("Business %s added customer %s", business["_id"], result.inserted_id)
    return customer_out(doc)


async def import_customers(
    db: MongoManager, business: dict, payload: List[CustomerCreateRequest]
) -> BulkImportResponse:
    """
    Upsert by email: unknown emails are added, known ones overwritten with the
    imported fields.
    """
    inserted = modified = 0
    now = now_utc()
    for row in payload:
        fields = row.model_dump()
        fields["updated_at"] = now
        result = await db.business_customers.update_one(
            {"business_id": business["_id"], "email": fields["email"]},
            {"$set": fields, "$setOnInsert": {"created_at": now}},
            upsert=True,
        )
        if result.upserted_id is not None:
            inserted += 1
        else:
            modified += result.modified_count

    logging.info("Business %s imported %d customers (%d new)", business["_id"], len(payload), inserted)
    return BulkImportResponse(inserted=inserted, modified=modified, total=len(payload))


# -----------------------------
# Update / delete
# -----------------------------
async def update_customer(
    db: MongoManager, business: dict, customer_id: str, payload: CustomerUpdateRequest
) -> CustomerOut:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    changes["updated_at"] = now_utc()

    try:
        updated = await db.business_customers.find_one_and_update(
            _owned(business, customer_id),
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Another customer with this email already exists")
    if not updated:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer_out(updated)


async def delete_customer(db: MongoManager, business: dict, customer_id: str) -> DeleteCustomerResponse:
    deleted = await db.business_customers.find_one_and_delete(_owned(business, customer_id))
    if not deleted:
        raise HTTPException(status_code=404, detail="Customer not found")

    logging.info("Business %s removed customer %s", business["_id"], deleted["_id"])
    return DeleteCustomerResponse()
