# refhub/models/reward_model.py
import secrets
from datetime import datetime
from enum import Enum
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from ..config import REWARD_CODE_LENGTH
from ..utils.datetime_utils import now_utc

# Unambiguous chars: no 0/O, 1/I
REWARD_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class RewardStatus(str, Enum):
    PENDING = "pending"
    AVAILABLE = "available"
    CLAIMED = "claimed"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class RewardSource(str, Enum):
    SHARE = "share"            # customer shared a campaign
    REFERRAL = "referral"      # link owner, activated when a referee converts
    CONVERSION = "conversion"  # referee who completed the referral


# Older documents were written with a second vocabulary.
LEGACY_STATUS_MAP = {
    "active": RewardStatus.AVAILABLE,
    "issued": RewardStatus.AVAILABLE,
}

# pending -> available -> claimed | redeemed, available -> expired (on read)
_TRANSITIONS = {
    RewardStatus.PENDING: {RewardStatus.AVAILABLE},
    RewardStatus.AVAILABLE: {RewardStatus.CLAIMED, RewardStatus.REDEEMED, RewardStatus.EXPIRED},
}


def normalize_status(raw) -> RewardStatus:
    if isinstance(raw, RewardStatus):
        return raw
    raw = (raw or "").strip().lower()
    if raw in LEGACY_STATUS_MAP:
        return LEGACY_STATUS_MAP[raw]
    try:
        return RewardStatus(raw)
    except ValueError:
        raise ValueError(f"Unknown reward status: {raw!r}")


def stored_values(status: RewardStatus) -> list:
    """Every raw value that reads back as ``status``; use with ``$in``."""
    values = [status.value]
    values.extend(k for k, v in LEGACY_STATUS_MAP.items() if v == status)
    return values


def can_transition(current, target: RewardStatus) -> bool:
    try:
        current = normalize_status(current)
    except ValueError:
        return False
    return target in _TRANSITIONS.get(current, set())


def generate_reward_code(length: int = REWARD_CODE_LENGTH) -> str:
    return "".join(secrets.choice(REWARD_CODE_ALPHABET) for _ in range(length))


class RewardModel(BaseModel):
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    user_id: ObjectId
    campaign_id: ObjectId
    business_id: Optional[ObjectId] = None
    type: str
    amount: float = 0
    status: RewardStatus = RewardStatus.PENDING
    source: RewardSource
    code: str = Field(default_factory=generate_reward_code)
    description: Optional[str] = None

    share_method: Optional[str] = None
    conversion_id: Optional[ObjectId] = None
    referral_code: Optional[str] = None

    date_earned: datetime = Field(default_factory=now_utc)
    date_activated: Optional[datetime] = None
    date_claimed: Optional[datetime] = None
    date_redeemed: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    referral_completed_by: Optional[ObjectId] = None

    payout_method: Optional[str] = None
    payout_details: Optional[dict] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "use_enum_values": True,
        "validate_default": True,
    }
