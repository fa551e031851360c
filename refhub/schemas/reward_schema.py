# refhub/schemas/reward_schema.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ._base import PyObjectId


class RewardOut(BaseModel):
    id: PyObjectId
    user_id: PyObjectId
    campaign_id: PyObjectId
    business_id: Optional[PyObjectId] = None
    campaign_name: str
    business_name: str
    type: str
    amount: float
    status: str
    claimable: bool
    code: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    date_earned: Optional[datetime] = None
    date_activated: Optional[datetime] = None
    date_claimed: Optional[datetime] = None
    date_redeemed: Optional[datetime] = None
    expiry_date: Optional[datetime] = None


class ClaimRewardRequest(BaseModel):
    reward_id: str = Field(..., min_length=1)
    payout_method: Optional[str] = Field(default=None, max_length=40)
    payout_details: Optional[Dict[str, Any]] = None


class ClaimRewardResponse(BaseModel):
    message: str
    reward_id: PyObjectId
    status: str
    payout_method: Optional[str] = None
    date_claimed: datetime


class RedeemRewardRequest(BaseModel):
    reward_id: str = Field(..., min_length=1)


class RedeemedReward(BaseModel):
    id: PyObjectId
    type: str
    amount: float
    code: Optional[str] = None
    status: str
    date_redeemed: datetime


class RedeemRewardResponse(BaseModel):
    success: bool = True
    message: str
    redemption_url: str
    business_name: str
    reward: RedeemedReward
