# refhub/schemas/campaign_schema.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ._base import PyObjectId

RewardType = Literal["cash", "discount", "gift", "points"]


def _check_url(v):
    if v is None:
        return None
    v = str(v).strip()
    if not v:
        return None
    if not v.startswith(("http://", "https://")):
        raise ValueError("landing_page_url must be an http(s) URL")
    return v


class CampaignCreateRequest(BaseModel):
    name: str = Field(..., min_length=2)
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    reward_type: RewardType
    reward_amount: float = Field(..., gt=0)
    reward_description: Optional[str] = None
    referrer_reward_type: Optional[RewardType] = None
    referrer_reward_amount: Optional[float] = Field(default=None, ge=0)
    referrer_reward_description: Optional[str] = None
    reward_expiry_days: Optional[int] = Field(default=None, gt=0)
    target_audience: Optional[str] = None
    conversion_criteria: Optional[str] = None
    landing_page_url: Optional[str] = None
    custom_message: Optional[str] = None

    @field_validator("landing_page_url", mode="before")
    @classmethod
    def _url(cls, v):
        return _check_url(v)


class CampaignUpdateRequest(BaseModel):
    """Every field optional; only the ones sent are written."""
    name: Optional[str] = Field(default=None, min_length=2)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None
    reward_type: Optional[RewardType] = None
    reward_amount: Optional[float] = Field(default=None, ge=0)
    reward_description: Optional[str] = None
    referrer_reward_type: Optional[RewardType] = None
    referrer_reward_amount: Optional[float] = Field(default=None, ge=0)
    referrer_reward_description: Optional[str] = None
    reward_expiry_days: Optional[int] = Field(default=None, gt=0)
    target_audience: Optional[str] = None
    conversion_criteria: Optional[str] = None
    landing_page_url: Optional[str] = None
    custom_message: Optional[str] = None

    @field_validator("name", "start_date", "is_active", "reward_type", "reward_amount", mode="before")
    @classmethod
    def _not_null(cls, v, info):
        # may be omitted, but a stored campaign always has them
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("landing_page_url", mode="before")
    @classmethod
    def _url(cls, v):
        return _check_url(v)


class CampaignOut(BaseModel):
    id: PyObjectId
    business_id: PyObjectId
    company_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    reward_type: Optional[str] = None
    reward_amount: float = 0
    reward_description: Optional[str] = None
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
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReferrerCampaignOut(CampaignOut):
    business_name: str
    is_selected: bool = False


class CustomerCampaignOut(CampaignOut):
    business_name: str
    is_shared: bool = False
    share_method: Optional[str] = None
    share_date: Optional[datetime] = None


class DeleteCampaignResponse(BaseModel):
    success: bool = True
    deleted_id: PyObjectId
