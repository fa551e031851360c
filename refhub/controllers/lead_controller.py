# refhub/controllers/lead_controller.py
"""
Public lead form and click beacon. Both identify the business by its
referral code rather than a campaign link, and both feed the per-day
counters in ``daily_stats``.
"""
import logging
from typing import Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from ..db.mongo import MongoManager
from ..models.referral_model import ReferralLeadModel
from ..models.user_model import UserRole
from ..schemas.referral_schema import (
    SubmitLeadRequest,
    SubmitLeadResponse,
    TrackClickRequest,
    TrackClickResponse,
)
from ..utils.datetime_utils import utc_day_start
from .campaign_controller import business_display_name


async def _business_by_code(db: MongoManager, code: str) -> dict:
    business = await db.users.find_one({"referral_code": code, "role": UserRole.BUSINESS.value})
    if not business:
        raise HTTPException(status_code=404, detail="Invalid business code")
    return business


async def _referrer_by_code(db: MongoManager, code: str) -> dict:
    referrer = await db.users.find_one({"referral_code": code})
    if not referrer:
        raise HTTPException(status_code=404, detail="Invalid referrer code")
    return referrer


async def bump_daily(db: MongoManager, business_id: ObjectId, field: str) -> None:
    await db.daily_stats.update_one(
        {"business_id": business_id, "date": utc_day_start()},
        {"$inc": {field: 1}},
        upsert=True,
    )


async def _active_campaign(db: MongoManager, business: dict, campaign_id: Optional[str]) -> Optional[dict]:
    if not campaign_id:
        return None
    if not ObjectId.is_valid(campaign_id):
        raise HTTPException(status_code=404, detail="Invalid or inactive campaign")
    campaign = await db.campaigns.find_one(
        {"_id": ObjectId(campaign_id), "business_id": business["_id"], "is_active": True}
    )
    if not campaign:
        raise HTTPException(status_code=404, detail="Invalid or inactive campaign")
    return campaign


async def submit_lead(db: MongoManager, payload: SubmitLeadRequest) -> SubmitLeadResponse:
    business = await _business_by_code(db, payload.business_code)
    referrer = await _referrer_by_code(db, payload.referrer_code)
    campaign = await _active_campaign(db, business, payload.campaign_id)

    doc = ReferralLeadModel(
        business_id=business["_id"],
        referrer_id=referrer["_id"],
        campaign_id=campaign["_id"] if campaign else None,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        notes=payload.notes,
    ).model_dump(by_alias=True, exclude_none=True)
    try:
        result = await db.referral_leads.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="This person has already been referred")

    if campaign:
        await db.campaigns.update_one({"_id": campaign["_id"]}, {"$inc": {"leads": 1}})
    await bump_daily(db, business["_id"], "leads")

    logging.info("Referrer %s submitted a lead for business %s", referrer["_id"], business["_id"])
    return SubmitLeadResponse(referral_id=result.inserted_id, message="Referral submitted successfully")


async def track_click(db: MongoManager, payload: TrackClickRequest) -> TrackClickResponse:
    business = await _business_by_code(db, payload.business_code)

    if payload.referrer_code:
        referrer = await _referrer_by_code(db, payload.referrer_code)
        await db.referral_leads.update_many(
            {"business_id": business["_id"], "referrer_id": referrer["_id"]},
            {"$inc": {"click_count": 1}},
        )
    await bump_daily(db, business["_id"], "clicks")

    return TrackClickResponse(business_name=business_display_name(business))
