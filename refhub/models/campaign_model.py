# refhub/models/campaign_model.py
from datetime import datetime
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from ..utils.datetime_utils import now_utc


class CampaignModel(BaseModel):
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    business_id: ObjectId
    # Copied from the business at creation; not kept in sync on rename.
    company_name: str
    name: str
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    is_active: bool = True

    # Referee (customer) reward
    reward_type: str
    reward_amount: float
    reward_description: Optional[str] = None

    # Sharer reward; falls back to the referee reward when unset
    referrer_reward_type: Optional[str] = None
    referrer_reward_amount: Optional[float] = None
    referrer_reward_description: Optional[str] = None

    reward_expiry_days: Optional[int] = None
    target_audience: Optional[str] = None
    conversion_criteria: Optional[str] = None
    landing_page_url: Optional[str] = None
    custom_message: Optional[str] = None

    shares: int = 0
    clicks: int = 0
    conversions: int = 0
    redemptions: int = 0
    leads: int = 0

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
    }


def sharer_reward_terms(campaign: dict) -> tuple:
    """(type, amount) paid to whoever shared the campaign."""
    reward_type = campaign.get("referrer_reward_type") or campaign.get("reward_type") or "discount"
    amount = campaign.get("referrer_reward_amount")
    if amount is None:
        amount = campaign.get("reward_amount") or 0
    return reward_type, amount
