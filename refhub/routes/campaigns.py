# refhub/routes/campaigns.py
from typing import List

from fastapi import APIRouter, Depends

from ..controllers.campaign_controller import (
    create_campaign,
    delete_campaign,
    get_campaign,
    list_campaigns,
    update_campaign,
)
from ..db.mongo import MongoManager, get_db
from ..schemas.campaign_schema import (
    CampaignCreateRequest,
    CampaignOut,
    CampaignUpdateRequest,
    DeleteCampaignResponse,
)
from ..utils.auth_utils import require_role

router = APIRouter(prefix="/campaigns", tags=["Campaigns"])

business_only = require_role("business")


@router.get("", response_model=List[CampaignOut], summary="List my campaigns (newest first)")
async def list_my_campaigns(business: dict = Depends(business_only), db: MongoManager = Depends(get_db)):
    return await list_campaigns(db, business)


@router.post("", status_code=201, response_model=CampaignOut, summary="Create a campaign")
async def create(
    payload: CampaignCreateRequest,
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await create_campaign(db, business, payload)


@router.get("/{campaign_id}", response_model=CampaignOut, summary="Get one of my campaigns")
async def get_one(campaign_id: str, business: dict = Depends(business_only), db: MongoManager = Depends(get_db)):
    return await get_campaign(db, business, campaign_id)


@router.patch("/{campaign_id}", response_model=CampaignOut, summary="Update one of my campaigns")
async def update(
    campaign_id: str,
    payload: CampaignUpdateRequest,
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await update_campaign(db, business, campaign_id, payload)


@router.delete("/{campaign_id}", response_model=DeleteCampaignResponse, summary="Delete one of my campaigns")
async def delete(campaign_id: str, business: dict = Depends(business_only), db: MongoManager = Depends(get_db)):
    return await delete_campaign(db, business, campaign_id)
