# refhub/models/task_model.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from ..utils.datetime_utils import now_utc

_MODEL_CONFIG = {
    "populate_by_name": True,
    "arbitrary_types_allowed": True,
    "use_enum_values": True,
    "validate_default": True,
}


class TaskType(str, Enum):
    SOCIAL = "social"
    CONTENT = "content"
    REFERRAL = "referral"
    OTHER = "other"


class TaskStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CompletionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TaskRewardStatus(str, Enum):
    PENDING = "pending"
    ISSUED = "issued"
    CLAIMED = "claimed"


class CampaignTaskModel(BaseModel):
    """
    Something a participant can do for a campaign (post, review, refer) in
    exchange for points.
    """
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    campaign_id: ObjectId
    business_id: ObjectId
    title: str
    description: str
    points: int = 0
    type: TaskType = TaskType.OTHER
    requirements: List[str] = Field(default_factory=list)
    order: int = 0
    status: TaskStatus = TaskStatus.ACTIVE
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    model_config = _MODEL_CONFIG


class TaskCompletionModel(BaseModel):
    """
    One participant's submission for a task. The business reviews it;
    approval issues the task's points, which the participant then claims.
    """
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    task_id: ObjectId
    campaign_id: ObjectId
    business_id: ObjectId
    user_id: ObjectId
    proof: str
    submission_data: Optional[Dict[str, Any]] = None
    status: CompletionStatus = CompletionStatus.PENDING
    reward_status: TaskRewardStatus = TaskRewardStatus.PENDING
    points: int = 0
    payout_method: Optional[str] = None
    payout_details: Optional[Dict[str, Any]] = None
    reviewed_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    model_config = _MODEL_CONFIG
