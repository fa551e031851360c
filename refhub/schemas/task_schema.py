# refhub/schemas/task_schema.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ._base import PyObjectId

TaskTypeName = Literal["social", "content", "referral", "other"]
TaskStatusName = Literal["active", "inactive"]
ReviewStatusName = Literal["approved", "rejected"]


# ---------- Tasks ----------
class TaskCreateRequest(BaseModel):
    campaign_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    points: int = Field(default=0, ge=0)
    type: TaskTypeName = "other"
    requirements: List[str] = Field(default_factory=list)
    order: int = 0

    @field_validator("title", "description", mode="before")
    @classmethod
    def _trim(cls, v):
        return v.strip() if isinstance(v, str) else v


class TaskStatusUpdateRequest(BaseModel):
    task_id: str = Field(..., min_length=1)
    status: TaskStatusName


class TaskOut(BaseModel):
    id: PyObjectId
    campaign_id: PyObjectId
    title: str
    description: str
    points: int = 0
    type: str
    requirements: List[str] = Field(default_factory=list)
    order: int = 0
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DeleteTaskResponse(BaseModel):
    success: bool = True


# ---------- Completions ----------
class CompletionCreateRequest(BaseModel):
    task_id: str = Field(..., min_length=1)
    proof: str = Field(..., min_length=1)
    submission_data: Optional[Dict[str, Any]] = None


class CompletionUpdateRequest(BaseModel):
    """
    With ``status`` the task's business reviews the submission; without it the
    submitter claims the points an approval issued.
    """
    completion_id: str = Field(..., min_length=1)
    status: Optional[ReviewStatusName] = None
    payout_method: Optional[str] = None
    payout_details: Optional[Dict[str, Any]] = None


class CompletionOut(BaseModel):
    id: PyObjectId
    task_id: PyObjectId
    campaign_id: PyObjectId
    user_id: PyObjectId
    proof: str
    submission_data: Optional[Dict[str, Any]] = None
    status: str
    reward_status: str
    points: int = 0
    payout_method: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CompletionUpdateResponse(BaseModel):
    success: bool = True
    completion: CompletionOut
