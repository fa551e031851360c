# refhub/controllers/referrer_controller.py
import logging
from typing import List

from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from ..db.mongo import MongoManager
from ..models.referral_model import ReferrerCampaignModel
from ..models.user_model import UserRole
from ..schemas.campaign_schema import ReferrerCampaignOut
from ..schemas.referral_schema import SelectCampaignRequest, SelectCampaignResponse
from ..utils.ids import as_oid
from .campaign_controller import business_display_name, campaign_fields


async def _business_names(db: MongoManager, business_ids) -> dict:
    ids = list({bid for bid in business_ids if bid is not None})
    if not ids:
        return {}
    cursor = db.users.find({"_id": {"$in": ids}, "role": UserRole.BUSINESS.value}, {"business_name": 1, "name": 1})
    return {b["_id"]: business_display_name(b) async for b in cursor}


async def _selected_campaign_ids(db: MongoManager, referrer: dict) -> set:
    cursor = db.referrer_campaigns.find({"referrer_id": referrer["_id"]}, {"campaign_id": 1})
    return {sc["campaign_id"] async for sc in cursor}


def _referrer_campaign_out(campaign: dict, names: dict, selected: set) -> ReferrerCampaignOut:
    name = campaign.get("company_name") or names.get(campaign.get("business_id")) or business_display_name(None)
    fields = campaign_fields(campaign)
    fields["company_name"] = name
    return ReferrerCampaignOut(**fields, business_name=name, is_selected=campaign["_id"] in selected)


async def list_referrer_campaigns(db: MongoManager, referrer: dict) -> List[ReferrerCampaignOut]:
    """
    Active campaigns of the referrer's company. Matches on the campaign's
    copied company_name first, then on businesses carrying that name.
    """
    company = referrer.get("company")
    if not company:
        logging.info("Referrer %s has no company; no campaigns to offer", referrer["_id"])
        return []

    campaigns = await db.campaigns.find({"company_name": company, "is_active": True}).to_list(length=None)

    if not campaigns:
        businesses = db.users.find(
            {"role": UserRole.BUSINESS.value, "$or": [{"business_name": company}, {"name": company}]},
            {"_id": 1},
        )
        business_ids = [b["_id"] async for b in businesses]
        if business_ids:
            campaigns = await db.campaigns.find(
                {"business_id": {"$in": business_ids}, "is_active": True}
            ).to_list(length=None)

    selected = await _selected_campaign_ids(db, referrer)
    names = await _business_names(db, [c.get("business_id") for c in campaigns])
    return [_referrer_campaign_out(c, names, selected) for c in campaigns]


async def get_referrer_campaign(db: MongoManager, referrer: dict, campaign_id: str) -> ReferrerCampaignOut:
    campaign = await db.campaigns.find_one({"_id": as_oid(campaign_id, "campaign id")})
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")

    selected = await _selected_campaign_ids(db, referrer)
    is_associated = referrer.get("business_id") is not None and referrer["business_id"] == campaign.get("business_id")
    if campaign["_id"] not in selected and not is_associated:
        raise HTTPException(status_code=403, detail="You do not have access to this campaign")

    names = await _business_names(db, [campaign.get("business_id")])
    return _referrer_campaign_out(campaign, names, selected)


async def select_campaign(db: MongoManager, referrer: dict, payload: SelectCampaignRequest) -> SelectCampaignResponse:
    campaign = await db.campaigns.find_one({"_id": as_oid(payload.campaign_id, "campaign id"), "is_active": True})
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found or not active")

    selection = ReferrerCampaignModel(
        referrer_id=referrer["_id"],
        campaign_id=campaign["_id"],
        business_id=campaign.get("business_id"),
    )
    try:
        result = await db.referrer_campaigns.insert_one(selection.model_dump(by_alias=True, exclude_none=True))
    except DuplicateKeyError:
        existing = await db.referrer_campaigns.find_one(
            {"referrer_id": referrer["_id"], "campaign_id": campaign["_id"]}, {"_id": 1}
        )
        return SelectCampaignResponse(message="Campaign already selected", id=existing["_id"] if existing else None)

    logging.info("Referrer %s selected campaign %s", referrer["_id"], campaign["_id"])
    return SelectCampaignResponse(message="Campaign selected successfully", id=result.inserted_id)
