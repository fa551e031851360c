# refhub/controllers/referral_controller.py
import logging
import secrets
from typing import Optional
from urllib.parse import urlparse

from bson import ObjectId
from fastapi import HTTPException
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..config import PUBLIC_APP_URL, REFERRAL_CODE_BYTES
from ..db.mongo import MongoManager
from ..models.campaign_model import sharer_reward_terms
from ..models.referral_model import (
    ConversionModel,
    ConversionStatus,
    CustomerShareModel,
    ReferralLinkModel,
    link_owner_id,
)
from ..models.reward_model import RewardModel, RewardSource, RewardStatus
from ..models.user_model import UserRole
from ..schemas.referral_schema import (
    CompleteReferralRequest,
    CompleteReferralResponse,
    GenerateLinkRequest,
    GenerateLinkResponse,
    ProcessLinkRequest,
    ProcessLinkResponse,
    PublicProcessResponse,
    RewardSummary,
    ShareCampaignRequest,
    ShareCampaignResponse,
)
from ..utils.datetime_utils import days_from_now, now_utc
from ..utils.ids import as_oid
from .campaign_controller import business_display_name

# Attempts at drawing an unused code before giving up
MAX_CODE_ATTEMPTS = 5


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────
def shareable_url(code: str) -> str:
    return f"{PUBLIC_APP_URL}/r/{code}"


def code_from_link(referral_link: str) -> Optional[str]:
    """Last path segment of a shareable URL (a bare code passes through)."""
    path = urlparse(referral_link).path or referral_link
    parts = [p for p in path.split("/") if p]
    return parts[-1] if parts else None


async def _active_campaign_or_404(db: MongoManager, campaign_id: str, session=None) -> dict:
    campaign = await db.campaigns.find_one(
        {"_id": as_oid(campaign_id, "campaign id"), "is_active": True}, session=session
    )
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found or not active")
    return campaign


async def _active_link_or_404(db: MongoManager, code: str) -> dict:
    link = await db.referral_links.find_one({"code": code, "active": True})
    if not link:
        raise HTTPException(status_code=404, detail="Invalid or expired referral link")
    return link


def _code_collision(exc: DuplicateKeyError) -> bool:
    # the server (and mongomock-motor) report which unique index was hit
    key_pattern = (exc.details or {}).get("keyPattern") or {}
    return "code" in key_pattern


async def _issue_link(db: MongoManager, campaign: dict, session=None, **owner_and_extras) -> dict:
    """
    Persist a ReferralLink with zeroed counters under a fresh random code.

    Outside a transaction a code collision is retried here. Inside one the
    DuplicateKeyError has already aborted the transaction, so it propagates
    and the caller re-runs the whole unit.
    """
    attempts = 1 if session is not None else MAX_CODE_ATTEMPTS
    for _ in range(attempts):
        link = ReferralLinkModel(
            code=secrets.token_hex(REFERRAL_CODE_BYTES),
            campaign_id=campaign["_id"],
            **owner_and_extras,
        )
        doc = link.model_dump(by_alias=True, exclude_none=True)
        try:
            result = await db.referral_links.insert_one(doc, session=session)
        except DuplicateKeyError:
            if session is not None:
                raise
            logging.warning("Referral code collision on campaign %s; retrying", campaign["_id"])
            continue
        doc["_id"] = result.inserted_id
        return doc

    raise HTTPException(status_code=500, detail="Failed to generate referral link")


async def _referrer_can_promote(db: MongoManager, referrer: dict, campaign: dict) -> bool:
    """A referrer may only share campaigns they have selected."""
    selected = await db.referrer_campaigns.find_one(
        {"referrer_id": referrer["_id"], "campaign_id": campaign["_id"]}, {"_id": 1}
    )
    return selected is not None


def _reward_summary(reward: dict) -> RewardSummary:
    return RewardSummary(
        id=reward["_id"],
        type=reward["type"],
        amount=reward["amount"],
        status=reward["status"],
        code=reward.get("code"),
        claimable=reward["status"] == RewardStatus.AVAILABLE.value,
    )


# ──────────────────────────────────────────────────────────────────────────────
# Referral-link issuing
# ──────────────────────────────────────────────────────────────────────────────
async def generate_referrer_link(
    db: MongoManager, referrer: dict, payload: GenerateLinkRequest
) -> GenerateLinkResponse:
    campaign = await _active_campaign_or_404(db, payload.campaign_id)

    if not await _referrer_can_promote(db, referrer, campaign):
        raise HTTPException(status_code=403, detail="You don't have access to this campaign")

    link = await _issue_link(
        db,
        campaign,
        referrer_id=referrer["_id"],
        custom_message=payload.custom_message,
    )
    logging.info("Referrer %s issued link %s for campaign %s", referrer["_id"], link["code"], campaign["_id"])
    return GenerateLinkResponse(referral_link=shareable_url(link["code"]), code=link["code"])


async def share_campaign(
    db: MongoManager, customer: dict, payload: ShareCampaignRequest
) -> ShareCampaignResponse:
    """
    Customer shares a campaign: share record + immediately available reward +
    referral link, all or nothing. A second share of the same campaign is a
    conflict and writes nothing.
    """
    campaign = await _active_campaign_or_404(db, payload.campaign_id)
    reward_type, reward_amount = sharer_reward_terms(campaign)

    # Ids are drawn up front so the three records can point at each other.
    share_id, reward_id, link_id = ObjectId(), ObjectId(), ObjectId()

    share_doc = CustomerShareModel(
        id=share_id,
        customer_id=customer["_id"],
        campaign_id=campaign["_id"],
        share_method=payload.share_method,
        referral_link_id=link_id,
        reward_id=reward_id,
    ).model_dump(by_alias=True, exclude_none=True)
    reward = RewardModel(
        id=reward_id,
        user_id=customer["_id"],
        campaign_id=campaign["_id"],
        business_id=campaign.get("business_id"),
        type=reward_type,
        amount=reward_amount,
        status=RewardStatus.AVAILABLE,
        source=RewardSource.SHARE,
        share_method=payload.share_method,
        description=f"Reward for sharing {campaign.get('name')} campaign",
        date_activated=now_utc(),
        expiry_date=days_from_now(campaign.get("reward_expiry_days")),
    )
    reward_doc = reward.model_dump(by_alias=True, exclude_none=True)

    async def _write(session) -> dict:
        # unique (customer_id, campaign_id): the duplicate check and the write are one step
        await db.customer_shares.insert_one(share_doc, session=session)
        await db.rewards.insert_one(reward_doc, session=session)
        link = await _issue_link(
            db,
            campaign,
            session=session,
            id=link_id,
            customer_id=customer["_id"],
            share_method=payload.share_method,
            reward_id=reward_id,
        )
        await db.campaigns.update_one({"_id": campaign["_id"]}, {"$inc": {"shares": 1}}, session=session)
        return link

    for _ in range(MAX_CODE_ATTEMPTS):
        try:
            link = await db.run_in_transaction(_write)
            break
        except DuplicateKeyError as exc:
            if db.use_transactions and _code_collision(exc):
                # the aborted transaction wrote nothing; draw another code
                logging.warning("Referral code collision on campaign %s; retrying share", campaign["_id"])
                continue
            raise HTTPException(status_code=409, detail="You have already shared this campaign")
    else:
        raise HTTPException(status_code=500, detail="Failed to generate referral link")

    logging.info("Customer %s shared campaign %s via %s", customer["_id"], campaign["_id"], payload.share_method)
    return ShareCampaignResponse(
        message="Campaign shared successfully!",
        referral_link=shareable_url(link["code"]),
        code=link["code"],
        reward=_reward_summary(reward_doc),
    )


# ──────────────────────────────────────────────────────────────────────────────
# Click / conversion tracking
# ──────────────────────────────────────────────────────────────────────────────
async def _count_click(db: MongoManager, link: dict) -> dict:
    await db.referral_links.update_one({"_id": link["_id"]}, {"$inc": {"clicks": 1}})
    campaign = await db.campaigns.find_one({"_id": link["campaign_id"]})
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    await db.campaigns.update_one({"_id": campaign["_id"]}, {"$inc": {"clicks": 1}})
    return campaign


async def record_pending_conversion(db: MongoManager, link: dict, campaign: dict, customer_id: ObjectId) -> dict:
    """
    Insert-if-absent the (link, customer) conversion. The first visit also
    mints the link owner's pending reward; later visits only read.
    """
    key = {"referral_link_id": link["_id"], "customer_id": customer_id}
    owner_id = link_owner_id(link)

    fresh = ConversionModel(
        referral_link_id=link["_id"],
        referrer_id=owner_id,
        campaign_id=link["campaign_id"],
        customer_id=customer_id,
    ).model_dump(by_alias=True, exclude_none=True)
    for field in key:
        fresh.pop(field)

    async def _write(session) -> None:
        result = await db.conversions.update_one(
            key, {"$setOnInsert": fresh}, upsert=True, session=session
        )
        if result.upserted_id is None or owner_id is None:
            return
        reward_type, reward_amount = sharer_reward_terms(campaign)
        owner_reward = RewardModel(
            user_id=owner_id,
            campaign_id=campaign["_id"],
            business_id=campaign.get("business_id"),
            type=reward_type,
            amount=reward_amount,
            status=RewardStatus.PENDING,
            source=RewardSource.REFERRAL,
            conversion_id=result.upserted_id,
            referral_code=link["code"],
            description=f"Reward for referring a customer to {campaign.get('name')}",
        )
        await db.rewards.insert_one(owner_reward.model_dump(by_alias=True, exclude_none=True), session=session)
        logging.info("Pending conversion %s on link %s", result.upserted_id, link["code"])

    try:
        # a rerun after a lost write conflict finds the winner's row and mints nothing
        await db.run_in_transaction(_write)
    except DuplicateKeyError:
        # a concurrent visit inserted the same pair first
        logging.info("Conversion for link %s / customer %s already recorded", link["code"], customer_id)

    return await db.conversions.find_one(key)


async def process_customer_link(
    db: MongoManager, customer: dict, payload: ProcessLinkRequest
) -> ProcessLinkResponse:
    code = payload.code or code_from_link(payload.referral_link)
    if not code:
        raise HTTPException(status_code=400, detail="Referral code is required")

    link = await _active_link_or_404(db, code)
    campaign = await _count_click(db, link)
    business = await db.users.find_one({"_id": campaign.get("business_id")}, {"business_name": 1, "name": 1})

    conversion = None
    if link_owner_id(link) != customer["_id"]:
        conversion = await record_pending_conversion(db, link, campaign, customer["_id"])

    return ProcessLinkResponse(
        id=campaign["_id"],
        name=campaign.get("name"),
        description=campaign.get("description"),
        business_name=business_display_name(business),
        company_name=campaign.get("company_name"),
        reward_type=campaign.get("reward_type"),
        reward_amount=campaign.get("reward_amount") or 0,
        start_date=campaign.get("start_date"),
        end_date=campaign.get("end_date"),
        is_active=campaign.get("is_active", True),
        referral_code=code,
        custom_message=link.get("custom_message"),
        conversion_status=conversion.get("status") if conversion else None,
    )


async def process_public_link(db: MongoManager, code: str, user: Optional[dict]) -> PublicProcessResponse:
    """
    Landing-page variant: anyone may hit it; a signed-in customer also gets a
    pending conversion.
    """
    link = await _active_link_or_404(db, code)
    campaign = await _count_click(db, link)

    owner_id = link_owner_id(link)
    owner = await db.users.find_one({"_id": owner_id}, {"name": 1}) if owner_id else None
    business = await db.users.find_one({"_id": campaign.get("business_id")}, {"business_name": 1, "name": 1})

    if user and user.get("role") == UserRole.CUSTOMER.value and user["_id"] != owner_id:
        await record_pending_conversion(db, link, campaign, user["_id"])

    return PublicProcessResponse(
        campaign_id=campaign["_id"],
        campaign_name=campaign.get("name"),
        campaign_description=campaign.get("description"),
        company_name=campaign.get("company_name") or business_display_name(business),
        referrer_name=(owner or {}).get("name") or "Anonymous",
        custom_message=link.get("custom_message"),
        code=link["code"],
    )


# ──────────────────────────────────────────────────────────────────────────────
# Conversion completion
# ──────────────────────────────────────────────────────────────────────────────
async def complete_referral(
    db: MongoManager, customer: dict, payload: CompleteReferralRequest
) -> CompleteReferralResponse:
    """
    pending -> completed, exactly once. Bumps the link and campaign conversion
    counters, pays the referee, and turns the link owner's pending reward
    into an available one.
    """
    link = await _active_link_or_404(db, payload.referral_code)
    owner_id = link_owner_id(link)

    if owner_id == customer["_id"]:
        raise HTTPException(status_code=400, detail="You cannot use your own referral link")

    conversion = await db.conversions.find_one({"referral_link_id": link["_id"], "customer_id": customer["_id"]})
    if not conversion:
        raise HTTPException(status_code=404, detail="No conversion record found for this referral")
    if conversion.get("status") == ConversionStatus.COMPLETED.value:
        raise HTTPException(status_code=409, detail="This referral has already been completed")
    if conversion.get("status") == ConversionStatus.REJECTED.value:
        raise HTTPException(status_code=409, detail="This referral was rejected")

    campaign = await db.campaigns.find_one({"_id": link["campaign_id"]})
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")

    now = now_utc()
    referee_reward = RewardModel(
        user_id=customer["_id"],
        campaign_id=campaign["_id"],
        business_id=campaign.get("business_id"),
        type=campaign.get("reward_type") or "discount",
        amount=campaign.get("reward_amount") or 0,
        status=RewardStatus.AVAILABLE,
        source=RewardSource.CONVERSION,
        conversion_id=conversion["_id"],
        referral_code=link["code"],
        description=f"Reward for completing {campaign.get('name')} campaign referral",
        date_activated=now,
        expiry_date=days_from_now(campaign.get("reward_expiry_days")),
    )
    referee_doc = referee_reward.model_dump(by_alias=True, exclude_none=True)
    referee_doc["_id"] = ObjectId()
    activation = {
        "status": RewardStatus.AVAILABLE.value,
        "date_activated": now,
        "referral_completed_by": customer["_id"],
        "expiry_date": days_from_now(campaign.get("reward_expiry_days")),
    }

    async def _complete(session) -> Optional[dict]:
        promoted = await db.conversions.find_one_and_update(
            {"_id": conversion["_id"], "status": ConversionStatus.PENDING.value},
            {"$set": {"status": ConversionStatus.COMPLETED.value, "updated_at": now, "completed_at": now}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if not promoted:
            # someone else completed it between the read and this write
            raise HTTPException(status_code=409, detail="This referral has already been completed")

        await db.referral_links.update_one({"_id": link["_id"]}, {"$inc": {"conversions": 1}}, session=session)
        await db.campaigns.update_one({"_id": campaign["_id"]}, {"$inc": {"conversions": 1}}, session=session)
        await db.rewards.insert_one(referee_doc, session=session)

        if owner_id is None:
            return None

        activated = await db.rewards.find_one_and_update(
            {"user_id": owner_id, "conversion_id": conversion["_id"], "status": RewardStatus.PENDING.value},
            {"$set": activation},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if activated is None:
            # rewards minted before conversions were linked to them
            activated = await db.rewards.find_one_and_update(
                {"user_id": owner_id, "campaign_id": campaign["_id"], "status": RewardStatus.PENDING.value},
                {"$set": activation},
                sort=[("date_earned", 1)],
                return_document=ReturnDocument.AFTER,
                session=session,
            )

        owner_update = {
            "$addToSet": {
                "successful_referrals": {
                    "user_id": customer["_id"],
                    "campaign_id": campaign["_id"],
                    "date": now,
                    "reward_id": referee_doc["_id"],
                }
            }
        }
        if activated is not None and link.get("referrer_id"):
            owner_update["$inc"] = {"earnings": activated.get("amount") or 0}
        await db.users.update_one({"_id": owner_id}, owner_update, session=session)
        return activated

    # a rerun after a lost write conflict sees the winner's completion and 409s
    activated = await db.run_in_transaction(_complete)

    if owner_id is not None and activated is None:
        logging.warning("No pending reward to activate for owner %s on campaign %s", owner_id, campaign["_id"])
    logging.info("Conversion %s completed by customer %s", conversion["_id"], customer["_id"])

    return CompleteReferralResponse(
        message="Referral completed successfully!",
        reward=_reward_summary(referee_doc),
    )
