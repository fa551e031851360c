# refhub/routes/customer.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..controllers.referral_controller import complete_referral, process_customer_link, share_campaign
from ..controllers.reporting_controller import (
    get_customer_profile,
    list_customer_campaigns,
    list_referred_campaigns,
)
from ..controllers.reward_controller import claim_reward, list_rewards, redeem_reward
from ..db.mongo import MongoManager, get_db
from ..schemas.campaign_schema import CustomerCampaignOut
from ..schemas.referral_schema import (
    CompleteReferralRequest,
    CompleteReferralResponse,
    ProcessLinkRequest,
    ProcessLinkResponse,
    ShareCampaignRequest,
    ShareCampaignResponse,
)
from ..schemas.reporting_schema import CustomerCampaignsResponse, CustomerProfileResponse
from ..schemas.reward_schema import (
    ClaimRewardRequest,
    ClaimRewardResponse,
    RedeemRewardRequest,
    RedeemRewardResponse,
    RewardOut,
)
from ..utils.auth_utils import get_current_user, require_role

router = APIRouter(prefix="/customer", tags=["Customer"])

customer_only = require_role("customer")


# ---------- Sharing & tracking ----------
@router.post("/share-campaign", response_model=ShareCampaignResponse, summary="Share a campaign and earn a reward")
async def share(
    payload: ShareCampaignRequest,
    customer: dict = Depends(customer_only),
    db: MongoManager = Depends(get_db),
):
    return await share_campaign(db, customer, payload)


@router.post("/process-link", response_model=ProcessLinkResponse, summary="Follow a referral link")
async def process_link(
    payload: ProcessLinkRequest,
    customer: dict = Depends(customer_only),
    db: MongoManager = Depends(get_db),
):
    return await process_customer_link(db, customer, payload)


@router.post("/complete-referral", response_model=CompleteReferralResponse, summary="Complete a referral")
async def complete(
    payload: CompleteReferralRequest,
    customer: dict = Depends(customer_only),
    db: MongoManager = Depends(get_db),
):
    return await complete_referral(db, customer, payload)


# ---------- Rewards ----------
@router.get("/rewards", response_model=List[RewardOut], summary="My rewards, newest first")
async def my_rewards(
    status: Optional[str] = Query(default=None, description="pending | available | claimed | redeemed | expired | all"),
    current_user: dict = Depends(get_current_user),
    db: MongoManager = Depends(get_db),
):
    return await list_rewards(db, current_user, status)


@router.post("/claim-reward", response_model=ClaimRewardResponse, summary="Claim an available reward")
async def claim(
    payload: ClaimRewardRequest,
    current_user: dict = Depends(require_role("customer", "referrer")),
    db: MongoManager = Depends(get_db),
):
    return await claim_reward(db, current_user, payload)


@router.post("/redeem-reward", response_model=RedeemRewardResponse, summary="Redeem an available reward")
async def redeem(
    payload: RedeemRewardRequest,
    customer: dict = Depends(customer_only),
    db: MongoManager = Depends(get_db),
):
    return await redeem_reward(db, customer, payload.reward_id)


@router.post("/rewards/{reward_id}/redeem", response_model=RedeemRewardResponse, summary="Redeem a reward by id")
async def redeem_by_id(
    reward_id: str,
    customer: dict = Depends(customer_only),
    db: MongoManager = Depends(get_db),
):
    return await redeem_reward(db, customer, reward_id)


# ---------- Reporting ----------
@router.get("/campaigns", response_model=CustomerCampaignsResponse, summary="Campaigns I shared or converted on")
async def my_campaigns(customer: dict = Depends(customer_only), db: MongoManager = Depends(get_db)):
    return await list_customer_campaigns(db, customer)


@router.get("/referred-campaigns", response_model=List[CustomerCampaignOut], summary="Campaigns I was referred to")
async def referred_campaigns(customer: dict = Depends(customer_only), db: MongoManager = Depends(get_db)):
    return await list_referred_campaigns(db, customer)


@router.get("/profile", response_model=CustomerProfileResponse, summary="My profile and statistics")
async def profile(customer: dict = Depends(customer_only), db: MongoManager = Depends(get_db)):
    return await get_customer_profile(db, customer)
