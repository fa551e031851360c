# refhub/controllers/reporting_controller.py
"""
Read-only views assembled from the campaign, conversion, share and reward
collections. Joins and aggregates happen here in Python; nothing is cached.
Reward counts reflect stored status, so rewards that are overdue but not yet
listed by their owner still count as available.
"""
from datetime import timedelta
from typing import List

from ..db.mongo import MongoManager
from ..models.referral_model import ConversionStatus
from ..models.reward_model import RewardStatus, stored_values
from ..models.user_model import UserRole
from ..schemas.campaign_schema import CustomerCampaignOut
from ..schemas.reporting_schema import (
    ActivityItem,
    AnalyticsResponse,
    AnalyticsSummary,
    CampaignAnalytics,
    CustomerCampaignsResponse,
    CustomerProfile,
    CustomerProfileResponse,
    CustomerStatistics,
    DailyActivity,
    ReferrerMetrics,
    ReferrerProfile,
    ReferrerProfileResponse,
    ReferrerStatistics,
    UserPreview,
)
from ..utils.datetime_utils import utc_day_start
from ..utils.ids import maybe_oid
from .campaign_controller import business_display_name, campaign_fields

DISCOVERY_LIMIT = 6
RECENT_ACTIVITY_LIMIT = 10
DAILY_WINDOW_DAYS = 30


def _rate(numerator: int, denominator: int) -> float:
    return round(numerator / denominator * 100, 1) if denominator else 0.0


async def _businesses_by_id(db: MongoManager, campaigns: list) -> dict:
    ids = list({c.get("business_id") for c in campaigns if c.get("business_id") is not None})
    if not ids:
        return {}
    cursor = db.users.find({"_id": {"$in": ids}, "role": UserRole.BUSINESS.value}, {"business_name": 1, "name": 1})
    return {b["_id"]: b async for b in cursor}


async def _count_rewards(db: MongoManager, user_id, status: RewardStatus) -> int:
    return await db.rewards.count_documents({"user_id": user_id, "status": {"$in": stored_values(status)}})


# ──────────────────────────────────────────────────────────────────────────────
# Customer views
# ──────────────────────────────────────────────────────────────────────────────
async def list_customer_campaigns(db: MongoManager, customer: dict) -> CustomerCampaignsResponse:
    conversions = await db.conversions.find({"customer_id": customer["_id"]}, {"campaign_id": 1}).to_list(length=None)
    shares = await db.customer_shares.find({"customer_id": customer["_id"]}).to_list(length=None)
    share_by_campaign = {s["campaign_id"]: s for s in shares}

    campaign_ids = list({c["campaign_id"] for c in conversions} | set(share_by_campaign))

    if not campaign_ids:
        # nothing yet: offer a few active campaigns to discover
        campaigns = await db.campaigns.find({"is_active": True}).limit(DISCOVERY_LIMIT).to_list(length=None)
    else:
        campaigns = await db.campaigns.find({"_id": {"$in": campaign_ids}}).to_list(length=None)

    businesses = await _businesses_by_id(db, campaigns)
    items = []
    for campaign in campaigns:
        share = share_by_campaign.get(campaign["_id"])
        items.append(
            CustomerCampaignOut(
                **campaign_fields(campaign),
                business_name=business_display_name(businesses.get(campaign.get("business_id"))),
                is_shared=share is not None,
                share_method=share.get("share_method") if share else None,
                share_date=share.get("created_at") if share else None,
            )
        )
    return CustomerCampaignsResponse(campaigns=items)


async def list_referred_campaigns(db: MongoManager, customer: dict) -> List[CustomerCampaignOut]:
    conversions = await db.conversions.find({"customer_id": customer["_id"]}, {"campaign_id": 1}).to_list(length=None)
    if not conversions:
        return []

    campaign_ids = list({c["campaign_id"] for c in conversions})
    campaigns = await db.campaigns.find({"_id": {"$in": campaign_ids}}).to_list(length=None)
    businesses = await _businesses_by_id(db, campaigns)
    return [
        CustomerCampaignOut(
            **campaign_fields(c),
            business_name=business_display_name(businesses.get(c.get("business_id"))),
        )
        for c in campaigns
    ]


async def get_customer_profile(db: MongoManager, customer: dict) -> CustomerProfileResponse:
    referred_by = None
    if customer.get("referred_by"):
        ref = await db.users.find_one({"_id": maybe_oid(customer["referred_by"])}, {"name": 1, "email": 1})
        if ref:
            referred_by = UserPreview(id=ref["_id"], name=ref.get("name"), email=ref.get("email"))

    business = None
    if customer.get("business_id"):
        business = await db.users.find_one({"_id": maybe_oid(customer["business_id"])}, {"business_name": 1, "name": 1})

    statistics = CustomerStatistics(
        available_rewards=await _count_rewards(db, customer["_id"], RewardStatus.AVAILABLE),
        redeemed_rewards=await _count_rewards(db, customer["_id"], RewardStatus.REDEEMED),
        total_shares=await db.customer_shares.count_documents({"customer_id": customer["_id"]}),
    )
    profile = CustomerProfile(
        id=customer["_id"],
        name=customer.get("name"),
        email=customer["email"],
        role=customer["role"],
        referred_by=referred_by,
        business_id=customer.get("business_id"),
        business_name=business_display_name(business) if business else None,
        date_joined=customer.get("created_at"),
        statistics=statistics,
    )
    return CustomerProfileResponse(profile=profile)


# ──────────────────────────────────────────────────────────────────────────────
# Referrer view
# ──────────────────────────────────────────────────────────────────────────────
async def get_referrer_profile(db: MongoManager, referrer: dict) -> ReferrerProfileResponse:
    business = None
    if referrer.get("business_id"):
        business = await db.users.find_one({"_id": maybe_oid(referrer["business_id"])}, {"business_name": 1, "name": 1})

    # every conversion on one of this referrer's links counts as a referral
    conversions = await db.conversions.find({"referrer_id": referrer["_id"]}, {"status": 1}).to_list(length=None)
    successful = sum(1 for c in conversions if c.get("status") == ConversionStatus.COMPLETED.value)

    rewards = await db.rewards.find({"user_id": referrer["_id"]}, {"amount": 1, "status": 1}).to_list(length=None)
    earned = [r for r in rewards if r.get("status") != RewardStatus.PENDING.value]
    total_earnings = sum(r.get("amount") or 0 for r in earned)

    metrics = ReferrerMetrics(
        total_referrals=len(conversions),
        successful_referrals=successful,
        conversion_rate=round(successful / len(conversions) * 100) if conversions else 0,
        total_earnings=total_earnings,
    )
    statistics = ReferrerStatistics(
        available_rewards=await _count_rewards(db, referrer["_id"], RewardStatus.AVAILABLE),
        redeemed_rewards=await _count_rewards(db, referrer["_id"], RewardStatus.REDEEMED),
        active_campaigns=await db.referrer_campaigns.count_documents({"referrer_id": referrer["_id"]}),
    )
    profile = ReferrerProfile(
        id=referrer["_id"],
        name=referrer.get("name"),
        email=referrer["email"],
        role=referrer["role"],
        company=referrer.get("company"),
        business_id=referrer.get("business_id"),
        business_name=business_display_name(business) if business else None,
        referral_code=referrer.get("referral_code"),
        earnings=referrer.get("earnings") or 0,
        metrics=metrics,
        statistics=statistics,
        customer_since=referrer.get("created_at"),
    )
    return ReferrerProfileResponse(profile=profile)


# ──────────────────────────────────────────────────────────────────────────────
# Business analytics
# ──────────────────────────────────────────────────────────────────────────────
async def get_business_analytics(db: MongoManager, business: dict) -> AnalyticsResponse:
    campaigns = await db.campaigns.find({"business_id": business["_id"]}).to_list(length=None)
    campaign_ids = [c["_id"] for c in campaigns]
    names = {c["_id"]: c.get("name") for c in campaigns}

    links = await db.referral_links.find(
        {"campaign_id": {"$in": campaign_ids}}, {"campaign_id": 1, "clicks": 1}
    ).to_list(length=None)
    conversions = await db.conversions.find({"campaign_id": {"$in": campaign_ids}}).to_list(length=None)
    total_leads = await db.referral_leads.count_documents({"business_id": business["_id"]})
    days = await db.daily_stats.find(
        {"business_id": business["_id"], "date": {"$gte": utc_day_start() - timedelta(days=DAILY_WINDOW_DAYS - 1)}}
    ).sort("date", 1).to_list(length=None)

    links_per_campaign = {}
    for link in links:
        links_per_campaign[link["campaign_id"]] = links_per_campaign.get(link["campaign_id"], 0) + 1

    total_clicks = sum(link.get("clicks") or 0 for link in links)
    completed = [c for c in conversions if c.get("status") == ConversionStatus.COMPLETED.value]

    summary = AnalyticsSummary(
        total_referrals=len(links),
        total_clicks=total_clicks,
        total_conversions=len(completed),
        overall_conversion_rate=_rate(len(completed), total_clicks),
        active_campaigns_count=sum(1 for c in campaigns if c.get("is_active")),
        customers_count=len({c["customer_id"] for c in conversions}),
        total_leads=total_leads,
    )

    rows = [
        CampaignAnalytics(
            id=c["_id"],
            name=c.get("name"),
            is_active=bool(c.get("is_active")),
            start_date=c.get("start_date"),
            end_date=c.get("end_date"),
            referrals=links_per_campaign.get(c["_id"], 0),
            clicks=c.get("clicks") or 0,
            conversions=c.get("conversions") or 0,
            shares=c.get("shares") or 0,
            redemptions=c.get("redemptions") or 0,
            leads=c.get("leads") or 0,
            conversion_rate=_rate(c.get("conversions") or 0, c.get("clicks") or 0),
        )
        for c in campaigns
    ]

    recent = sorted(conversions, key=lambda c: c.get("updated_at") or c.get("created_at"), reverse=True)
    recent = recent[:RECENT_ACTIVITY_LIMIT]
    customer_ids = list({c["customer_id"] for c in recent})
    customers = {
        u["_id"]: u.get("name") or u.get("email")
        async for u in db.users.find({"_id": {"$in": customer_ids}}, {"name": 1, "email": 1})
    }

    activity = []
    for c in recent:
        who = customers.get(c["customer_id"]) or "A customer"
        what = names.get(c["campaign_id"]) or "a campaign"
        if c.get("status") == ConversionStatus.COMPLETED.value:
            activity.append(
                ActivityItem(type="conversion", date=c.get("completed_at") or c.get("updated_at"),
                             description=f"{who} completed a referral for {what}")
            )
        else:
            activity.append(
                ActivityItem(type="referral", date=c.get("created_at"),
                             description=f"{who} followed a referral link for {what}")
            )

    daily = [DailyActivity(date=d["date"], clicks=d.get("clicks") or 0, leads=d.get("leads") or 0) for d in days]
    return AnalyticsResponse(summary=summary, campaigns=rows, recent_activity=activity, daily=daily)
