# refhub/controllers/campaign_controller.py
import logging
from typing import List

from fastapi import HTTPException
from pymongo import ReturnDocument

from ..db.mongo import MongoManager
from ..models.campaign_model import CampaignModel
from ..schemas.campaign_schema import (
    CampaignCreateRequest,
    CampaignOut,
    CampaignUpdateRequest,
    DeleteCampaignResponse,
)
from ..utils.datetime_utils import now_utc
from ..utils.ids import as_oid

UNKNOWN_BUSINESS = "Unknown Business"


# -----------------------------
# Helpers
# -----------------------------
def campaign_fields(doc: dict) -> dict:
    """Stored campaign document -> kwargs for CampaignOut and its subclasses."""
    fields = {k: v for k, v in doc.items() if k in CampaignOut.model_fields}
    fields["id"] = doc["_id"]
    return fields


def campaign_out(doc: dict) -> CampaignOut:
    return CampaignOut(**campaign_fields(doc))


def business_display_name(business) -> str:
    if not business:
        return UNKNOWN_BUSINESS
    return business.get("business_name") or business.get("name") or UNKNOWN_BUSINESS


async def _owned_campaign_or_404(db: MongoManager, campaign_id: str, business: dict) -> dict:
    campaign = await db.campaigns.find_one(
        {"_id": as_oid(campaign_id, "campaign id"), "business_id": business["_id"]}
    )
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


# -----------------------------
# CRUD (business owned)
# -----------------------------
async def list_campaigns(db: MongoManager, business: dict) -> List[CampaignOut]:
    cursor = db.campaigns.find({"business_id": business["_id"]}).sort([("created_at", -1), ("_id", -1)])
    return [campaign_out(doc) async for doc in cursor]


async def create_campaign(db: MongoManager, business: dict, payload: CampaignCreateRequest) -> CampaignOut:
    campaign = CampaignModel(
        business_id=business["_id"],
        company_name=business_display_name(business),
        **payload.model_dump(),
    )
    doc = campaign.model_dump(by_alias=True, exclude_none=True)
    result = await db.campaigns.insert_one(doc)
    doc["_id"] = result.inserted_id

    logging.info("Business %s created campaign %s", business["_id"], result.inserted_id)
    return campaign_out(doc)


async def get_campaign(db: MongoManager, business: dict, campaign_id: str) -> CampaignOut:
    return campaign_out(await _owned_campaign_or_404(db, campaign_id, business))


async def update_campaign(
    db: MongoManager, business: dict, campaign_id: str, payload: CampaignUpdateRequest
) -> CampaignOut:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    changes["updated_at"] = now_utc()

    updated = await db.campaigns.find_one_and_update(
        {"_id": as_oid(campaign_id, "campaign id"), "business_id": business["_id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign_out(updated)


async def delete_campaign(db: MongoManager, business: dict, campaign_id: str) -> DeleteCampaignResponse:
    """
    Hard delete. Links, conversions and rewards that point at the campaign are
    left alone.
    """
    deleted = await db.campaigns.find_one_and_delete(
        {"_id": as_oid(campaign_id, "campaign id"), "business_id": business["_id"]}
    )
    if not deleted:
        raise HTTPException(status_code=404, detail="Campaign not found")

    logging.info("Business %s deleted campaign %s", business["_id"], deleted["_id"])
    return DeleteCampaignResponse(deleted_id=deleted["_id"])
