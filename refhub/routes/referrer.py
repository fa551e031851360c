# refhub/routes/referrer.py
from typing import List

from fastapi import APIRouter, Depends

from ..controllers.referral_controller import generate_referrer_link
from ..controllers.referrer_controller import (
    get_referrer_campaign,
    list_referrer_campaigns,
    select_campaign,
)
from ..controllers.reporting_controller import get_referrer_profile
from ..db.mongo import MongoManager, get_db
from ..schemas.campaign_schema import ReferrerCampaignOut
from ..schemas.referral_schema import (
    GenerateLinkRequest,
    GenerateLinkResponse,
    SelectCampaignRequest,
    SelectCampaignResponse,
)
from ..schemas.reporting_schema import ReferrerProfileResponse
from ..utils.auth_utils import require_role

router = APIRouter(prefix="/referrer", tags=["Referrer"])

referrer_only = require_role("referrer")


@router.get("/campaigns", response_model=List[ReferrerCampaignOut], summary="Active campaigns of my company")
async def my_company_campaigns(referrer: dict = Depends(referrer_only), db: MongoManager = Depends(get_db)):
    return await list_referrer_campaigns(db, referrer)


@router.get("/campaigns/{campaign_id}", response_model=ReferrerCampaignOut, summary="Campaign detail")
async def campaign_detail(
    campaign_id: str,
    referrer: dict = Depends(referrer_only),
    db: MongoManager = Depends(get_db),
):
    return await get_referrer_campaign(db, referrer, campaign_id)


@router.post("/select-campaign", response_model=SelectCampaignResponse, summary="Opt in to promote a campaign")
async def select(
    payload: SelectCampaignRequest,
    referrer: dict = Depends(referrer_only),
    db: MongoManager = Depends(get_db),
):
    return await select_campaign(db, referrer, payload)


@router.post("/generate-link", response_model=GenerateLinkResponse, summary="Issue a referral link")
async def generate_link(
    payload: GenerateLinkRequest,
    referrer: dict = Depends(referrer_only),
    db: MongoManager = Depends(get_db),
):
    return await generate_referrer_link(db, referrer, payload)


@router.get("/profile", response_model=ReferrerProfileResponse, summary="My profile, metrics and statistics")
async def profile(referrer: dict = Depends(referrer_only), db: MongoManager = Depends(get_db)):
    return await get_referrer_profile(db, referrer)
