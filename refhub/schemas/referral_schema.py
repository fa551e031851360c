# refhub/schemas/referral_schema.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ._base import PyObjectId


def _trim(v):
    if v is None:
        return None
    v = str(v).strip()
    return v or None


# ---------- Referrer side ----------
class SelectCampaignRequest(BaseModel):
    campaign_id: str = Field(..., min_length=1)


class SelectCampaignResponse(BaseModel):
    message: str
    id: Optional[PyObjectId] = None


class GenerateLinkRequest(BaseModel):
    campaign_id: str = Field(..., min_length=1)
    custom_message: Optional[str] = Field(default=None, max_length=500)

    @field_validator("custom_message", mode="before")
    @classmethod
    def _trim_message(cls, v):
        return _trim(v)


class GenerateLinkResponse(BaseModel):
    success: bool = True
    referral_link: str
    code: str


# ---------- Customer side ----------
class ShareCampaignRequest(BaseModel):
    campaign_id: str = Field(..., min_length=1)
    share_method: str = Field(..., min_length=1, max_length=40)


class RewardSummary(BaseModel):
    id: PyObjectId
    type: str
    amount: float
    status: str
    code: Optional[str] = None
    claimable: bool


class ShareCampaignResponse(BaseModel):
    message: str
    referral_link: str
    code: str
    reward: RewardSummary


class ProcessLinkRequest(BaseModel):
    """Either the bare code or the full shareable URL."""
    referral_link: Optional[str] = None
    code: Optional[str] = None

    @field_validator("referral_link", "code", mode="before")
    @classmethod
    def _trim_fields(cls, v):
        return _trim(v)

    @model_validator(mode="after")
    def _need_one(self):
        if not self.code and not self.referral_link:
            raise ValueError("Referral code is required")
        return self


class ProcessLinkResponse(BaseModel):
    id: PyObjectId
    name: str
    description: Optional[str] = None
    business_name: str
    company_name: Optional[str] = None
    reward_type: Optional[str] = None
    reward_amount: float = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    referral_code: str
    custom_message: Optional[str] = None
    conversion_status: Optional[str] = None


class PublicProcessRequest(BaseModel):
    code: str = Field(..., min_length=1)


class PublicProcessResponse(BaseModel):
    campaign_id: PyObjectId
    campaign_name: str
    campaign_description: Optional[str] = None
    company_name: str
    referrer_name: str
    custom_message: Optional[str] = None
    code: str


class CompleteReferralRequest(BaseModel):
    referral_code: str = Field(..., min_length=1)

    @field_validator("referral_code", mode="before")
    @classmethod
    def _trim_code(cls, v):
        return _trim(v)


class CompleteReferralResponse(BaseModel):
    message: str
    reward: RewardSummary


# ---------- Lead form / click beacon (public) ----------
class SubmitLeadRequest(BaseModel):
    business_code: str = Field(..., min_length=5)
    referrer_code: str = Field(..., min_length=5)
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    notes: Optional[str] = None
    campaign_id: Optional[str] = None

    @field_validator("business_code", "referrer_code", "name", "phone", "notes", "campaign_id", mode="before")
    @classmethod
    def _trim_fields(cls, v):
        return _trim(v)

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()


class SubmitLeadResponse(BaseModel):
    success: bool = True
    referral_id: PyObjectId
    message: str


class TrackClickRequest(BaseModel):
    business_code: str = Field(..., min_length=5)
    referrer_code: Optional[str] = Field(default=None, min_length=5)

    @field_validator("business_code", "referrer_code", mode="before")
    @classmethod
    def _trim_codes(cls, v):
        return _trim(v)


class TrackClickResponse(BaseModel):
    success: bool = True
    business_name: str
