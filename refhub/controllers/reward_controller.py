# refhub/controllers/reward_controller.py
import logging
from typing import List, Optional
from urllib.parse import urlencode

from bson import ObjectId
from fastapi import HTTPException
from pymongo import ReturnDocument

from ..db.mongo import MongoManager
from ..models.reward_model import RewardStatus, can_transition, normalize_status, stored_values
from ..schemas.reward_schema import (
    ClaimRewardRequest,
    ClaimRewardResponse,
    RedeemedReward,
    RedeemRewardResponse,
    RewardOut,
)
from ..utils.datetime_utils import is_past, now_utc
from ..utils.ids import as_oid
from .campaign_controller import business_display_name

UNKNOWN_CAMPAIGN = "Unknown Campaign"


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────
def _display_status(raw) -> str:
    try:
        return normalize_status(raw).value
    except ValueError:
        logging.warning("Reward with unrecognised status %r", raw)
        return str(raw)


def _format_amount(amount) -> str:
    if isinstance(amount, float) and amount.is_integer():
        return str(int(amount))
    return str(amount)


def build_redemption_url(website: Optional[str], reward: dict) -> str:
    """
    Business website with the reward appended as query parameters; empty when
    the business never configured a website.
    """
    if not website:
        return ""
    separator = "&" if "?" in website else "?"
    query = urlencode(
        {
            "reward_code": reward.get("code") or "",
            "reward_type": reward.get("type") or "",
            "reward_amount": _format_amount(reward.get("amount") or 0),
        }
    )
    return f"{website}{separator}{query}"


async def expire_overdue_rewards(db: MongoManager, user_id: ObjectId) -> int:
    """
    Lazy expiry: available rewards past their expiry_date flip to expired when
    their owner looks at them. There is no background sweep.
    """
    cursor = db.rewards.find(
        {"user_id": user_id, "status": {"$in": stored_values(RewardStatus.AVAILABLE)}, "expiry_date": {"$ne": None}},
        {"expiry_date": 1},
    )
    overdue = [r["_id"] async for r in cursor if is_past(r.get("expiry_date"))]
    if not overdue:
        return 0

    result = await db.rewards.update_many(
        {"_id": {"$in": overdue}, "status": {"$in": stored_values(RewardStatus.AVAILABLE)}},
        {"$set": {"status": RewardStatus.EXPIRED.value, "date_expired": now_utc()}},
    )
    logging.info("Expired %s reward(s) for user %s", result.modified_count, user_id)
    return result.modified_count


async def _owned_reward(db: MongoManager, user: dict, reward_id: str) -> dict:
    reward = await db.rewards.find_one({"_id": as_oid(reward_id, "reward id")})
    if not reward:
        raise HTTPException(status_code=404, detail="Reward not found")
    if reward.get("user_id") != user["_id"]:
        raise HTTPException(status_code=403, detail="You can only use your own rewards")
    return reward


async def _ensure_transition(db: MongoManager, reward: dict, target: RewardStatus, verb: str) -> None:
    status = _display_status(reward.get("status"))
    if not can_transition(reward.get("status"), target):
        raise HTTPException(status_code=400, detail=f"Reward cannot be {verb} because it is {status}")

    if is_past(reward.get("expiry_date")):
        await db.rewards.update_one(
            {"_id": reward["_id"], "status": {"$in": stored_values(RewardStatus.AVAILABLE)}},
            {"$set": {"status": RewardStatus.EXPIRED.value, "date_expired": now_utc()}},
        )
        raise HTTPException(status_code=400, detail="Reward has expired")


# ──────────────────────────────────────────────────────────────────────────────
# Listing
# ──────────────────────────────────────────────────────────────────────────────
async def list_rewards(db: MongoManager, user: dict, status_filter: Optional[str] = None) -> List[RewardOut]:
    await expire_overdue_rewards(db, user["_id"])

    match = {"user_id": user["_id"]}
    if status_filter and status_filter != "all":
        try:
            wanted = normalize_status(status_filter)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown reward status: {status_filter}")
        match["status"] = {"$in": stored_values(wanted)}

    pipeline = [
        {"$match": match},
        {"$lookup": {"from": "campaigns", "localField": "campaign_id", "foreignField": "_id", "as": "campaign"}},
        {"$lookup": {"from": "users", "localField": "business_id", "foreignField": "_id", "as": "business"}},
        {"$sort": {"date_earned": -1}},
    ]
    docs = await db.rewards.aggregate(pipeline).to_list(length=None)

    rewards = []
    for doc in docs:
        campaign = doc["campaign"][0] if doc.get("campaign") else None
        business = doc["business"][0] if doc.get("business") else None
        status = _display_status(doc.get("status"))
        rewards.append(
            RewardOut(
                id=doc["_id"],
                user_id=doc["user_id"],
                campaign_id=doc["campaign_id"],
                business_id=doc.get("business_id"),
                campaign_name=(campaign or {}).get("name") or UNKNOWN_CAMPAIGN,
                business_name=business_display_name(business),
                type=doc.get("type") or "discount",
                amount=doc.get("amount") or 0,
                status=status,
                claimable=status == RewardStatus.AVAILABLE.value,
                code=doc.get("code"),
                description=doc.get("description"),
                source=doc.get("source"),
                date_earned=doc.get("date_earned"),
                date_activated=doc.get("date_activated"),
                date_claimed=doc.get("date_claimed"),
                date_redeemed=doc.get("date_redeemed"),
                expiry_date=doc.get("expiry_date"),
            )
        )
    return rewards


# ──────────────────────────────────────────────────────────────────────────────
# Claim / redeem
# ──────────────────────────────────────────────────────────────────────────────
async def claim_reward(db: MongoManager, user: dict, payload: ClaimRewardRequest) -> ClaimRewardResponse:
    reward = await _owned_reward(db, user, payload.reward_id)
    await _ensure_transition(db, reward, RewardStatus.CLAIMED, "claimed")

    now = now_utc()
    changes = {"status": RewardStatus.CLAIMED.value, "date_claimed": now}
    if payload.payout_method:
        changes["payout_method"] = payload.payout_method
    if payload.payout_details:
        changes["payout_details"] = payload.payout_details

    claimed = await db.rewards.find_one_and_update(
        {"_id": reward["_id"], "status": {"$in": stored_values(RewardStatus.AVAILABLE)}},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not claimed:
        raise HTTPException(status_code=409, detail="Reward is no longer claimable")

    logging.info("User %s claimed reward %s", user["_id"], reward["_id"])
    return ClaimRewardResponse(
        message="Reward claimed successfully!",
        reward_id=reward["_id"],
        status=RewardStatus.CLAIMED.value,
        payout_method=claimed.get("payout_method"),
        date_claimed=now,
    )


async def redeem_reward(db: MongoManager, user: dict, reward_id: str) -> RedeemRewardResponse:
    reward = await _owned_reward(db, user, reward_id)
    await _ensure_transition(db, reward, RewardStatus.REDEEMED, "redeemed")

    now = now_utc()

    async def _redeem(session):
        redeemed = await db.rewards.find_one_and_update(
            {"_id": reward["_id"], "status": {"$in": stored_values(RewardStatus.AVAILABLE)}},
            {"$set": {"status": RewardStatus.REDEEMED.value, "date_redeemed": now}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if not redeemed:
            raise HTTPException(status_code=409, detail="Reward is no longer available")

        campaign = await db.campaigns.find_one_and_update(
            {"_id": reward["campaign_id"]},
            {"$inc": {"redemptions": 1}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return redeemed, campaign

    redeemed, campaign = await db.run_in_transaction(_redeem)

    business = None
    business_id = reward.get("business_id") or (campaign or {}).get("business_id")
    if business_id is not None:
        business = await db.users.find_one({"_id": business_id}, {"business_name": 1, "name": 1, "website": 1})

    logging.info("User %s redeemed reward %s", user["_id"], reward["_id"])
    return RedeemRewardResponse(
        message="Reward redeemed successfully",
        redemption_url=build_redemption_url((business or {}).get("website"), redeemed),
        business_name=business_display_name(business),
        reward=RedeemedReward(
            id=redeemed["_id"],
            type=redeemed.get("type") or "discount",
            amount=redeemed.get("amount") or 0,
            code=redeemed.get("code"),
            status=RewardStatus.REDEEMED.value,
            date_redeemed=now,
        ),
    )
