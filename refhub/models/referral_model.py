# refhub/models/referral_model.py
from datetime import datetime
from enum import Enum
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from ..utils.datetime_utils import now_utc

_MODEL_CONFIG = {
    "populate_by_name": True,
    "arbitrary_types_allowed": True,
    "use_enum_values": True,
    "validate_default": True,
}


class ConversionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ReferrerCampaignModel(BaseModel):
    """
    A referrer opting in to promote a campaign ("selected" campaigns).
    """
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    referrer_id: ObjectId
    campaign_id: ObjectId
    business_id: Optional[ObjectId] = None
    status: str = "active"
    selected_at: datetime = Field(default_factory=now_utc)

    model_config = _MODEL_CONFIG


class ReferralLinkModel(BaseModel):
    """
    One shareable code. Exactly one of referrer_id / customer_id names the owner.
    """
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    code: str
    referrer_id: Optional[ObjectId] = None
    customer_id: Optional[ObjectId] = None
    campaign_id: ObjectId
    custom_message: Optional[str] = None
    share_method: Optional[str] = None
    reward_id: Optional[ObjectId] = None
    clicks: int = 0
    conversions: int = 0
    active: bool = True
    created_at: datetime = Field(default_factory=now_utc)

    model_config = _MODEL_CONFIG


def link_owner_id(link: dict) -> Optional[ObjectId]:
    return link.get("referrer_id") or link.get("customer_id")


class ConversionModel(BaseModel):
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    referral_link_id: ObjectId
    referrer_id: Optional[ObjectId] = None  # link owner, whichever role
    campaign_id: ObjectId
    customer_id: ObjectId
    status: ConversionStatus = ConversionStatus.PENDING
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)
    completed_at: Optional[datetime] = None

    model_config = _MODEL_CONFIG


class CustomerShareModel(BaseModel):
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    customer_id: ObjectId
    campaign_id: ObjectId
    share_method: str
    referral_link_id: Optional[ObjectId] = None
    reward_id: Optional[ObjectId] = None
    created_at: datetime = Field(default_factory=now_utc)

    model_config = _MODEL_CONFIG


class ReferralLeadModel(BaseModel):
    """
    A person a referrer put forward by name and email (the lead form), as
    opposed to a link click. Unique per (business, referrer, email).
    """
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    business_id: ObjectId
    referrer_id: ObjectId
    campaign_id: Optional[ObjectId] = None
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None
    # the click that led to the submission counts
    click_count: int = 1
    created_at: datetime = Field(default_factory=now_utc)

    model_config = _MODEL_CONFIG
