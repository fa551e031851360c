# refhub/schemas/reporting_schema.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ._base import PyObjectId
from .campaign_schema import CustomerCampaignOut


class CustomerCampaignsResponse(BaseModel):
    campaigns: List[CustomerCampaignOut]


class UserPreview(BaseModel):
    id: PyObjectId
    name: Optional[str] = None
    email: Optional[str] = None


class CustomerStatistics(BaseModel):
    available_rewards: int = 0
    redeemed_rewards: int = 0
    total_shares: int = 0


class CustomerProfile(BaseModel):
    id: PyObjectId
    name: Optional[str] = None
    email: str
    role: str
    referred_by: Optional[UserPreview] = None
    business_id: Optional[PyObjectId] = None
    business_name: Optional[str] = None
    date_joined: Optional[datetime] = None
    statistics: CustomerStatistics


class CustomerProfileResponse(BaseModel):
    profile: CustomerProfile


class ReferrerMetrics(BaseModel):
    total_referrals: int = 0
    successful_referrals: int = 0
    conversion_rate: int = 0
    total_earnings: float = 0


class ReferrerStatistics(BaseModel):
    available_rewards: int = 0
    redeemed_rewards: int = 0
    active_campaigns: int = 0


class ReferrerProfile(BaseModel):
    id: PyObjectId
    name: Optional[str] = None
    email: str
    role: str
    company: Optional[str] = None
    business_id: Optional[PyObjectId] = None
    business_name: Optional[str] = None
    referral_code: Optional[str] = None
    earnings: float = 0
    metrics: ReferrerMetrics
    statistics: ReferrerStatistics
    customer_since: Optional[datetime] = None


class ReferrerProfileResponse(BaseModel):
    profile: ReferrerProfile


# ---------- Business analytics ----------
class AnalyticsSummary(BaseModel):
    total_referrals: int = 0
    total_clicks: int = 0
    total_conversions: int = 0
    overall_conversion_rate: float = 0.0
    active_campaigns_count: int = 0
    customers_count: int = 0
    total_leads: int = 0


class CampaignAnalytics(BaseModel):
    id: PyObjectId
    name: str
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    referrals: int = 0
    clicks: int = 0
    conversions: int = 0
    shares: int = 0
    redemptions: int = 0
    leads: int = 0
    conversion_rate: float = 0.0


class ActivityItem(BaseModel):
    type: str
    date: Optional[datetime] = None
    description: str


class DailyActivity(BaseModel):
    date: datetime
    clicks: int = 0
    leads: int = 0


class AnalyticsResponse(BaseModel):
    summary: AnalyticsSummary
    campaigns: List[CampaignAnalytics]
    recent_activity: List[ActivityItem]
    daily: List[DailyActivity] = []


# ---------- Coupons ----------
class Coupon(BaseModel):
    id: str
    title: str
    description: str
    category: str
    code: str
    expiry_date: str
    discount: str


class CouponsResponse(BaseModel):
    coupons: List[Coupon]
    source: str = "catalog"
