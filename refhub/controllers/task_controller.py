# refhub/controllers/task_controller.py
import logging
from typing import List, Optional

from fastapi import HTTPException
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.mongo import MongoManager
from ..models.task_model import (
    CampaignTaskModel,
    CompletionStatus,
    TaskCompletionModel,
    TaskRewardStatus,
    TaskStatus,
)
from ..schemas.task_schema import (
    CompletionCreateRequest,
    CompletionOut,
    CompletionUpdateRequest,
    CompletionUpdateResponse,
    DeleteTaskResponse,
    TaskCreateRequest,
    TaskOut,
    TaskStatusUpdateRequest,
)
from ..utils.datetime_utils import now_utc
from ..utils.ids import as_oid

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def task_out(doc: dict) -> TaskOut:
    fields = {k: v for k, v in doc.items() if k in TaskOut.model_fields}
    fields["id"] = doc["_id"]
    return TaskOut(**fields)


def completion_out(doc: dict) -> CompletionOut:
    fields = {k: v for k, v in doc.items() if k in CompletionOut.model_fields}
    fields["id"] = doc["_id"]
    return CompletionOut(**fields)


# -----------------------------
# Tasks
# -----------------------------
async def list_tasks(db: MongoManager, user: dict, campaign_id: str) -> List[TaskOut]:
    """
    The owning business sees every task of the campaign; anyone else only the
    active ones.
    """
    campaign = await db.campaigns.find_one({"_id": as_oid(campaign_id, "campaign id")}, {"business_id": 1})
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")

    query = {"campaign_id": campaign["_id"]}
    if campaign.get("business_id") != user["_id"]:
        query["status"] = TaskStatus.ACTIVE.value

    cursor = db.campaign_tasks.find(query).sort(NEWEST_FIRST)
    return [task_out(doc) async for doc in cursor]


async def create_task(db: MongoManager, business: dict, payload: TaskCreateRequest) -> TaskOut:
    campaign = await db.campaigns.find_one(
        {"_id": as_oid(payload.campaign_id, "campaign id"), "business_id": business["_id"]}, {"_id": 1}
    )
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")

    fields = payload.model_dump(exclude={"campaign_id"})
    doc = CampaignTaskModel(campaign_id=campaign["_id"], business_id=business["_id"], **fields).model_dump(
        by_alias=True, exclude_none=True
    )
    result = await db.campaign_tasks.insert_one(doc)
    doc["_id"] = result.inserted_id

    logging.info("Business %s added task %s to campaign %s", business["_id"], result.inserted_id, campaign["_id"])
    return task_out(doc)


async def update_task_status(db: MongoManager, business: dict, payload: TaskStatusUpdateRequest) -> TaskOut:
    updated = await db.campaign_tasks.find_one_and_update(
        {"_id": as_oid(payload.task_id, "task id"), "business_id": business["_id"]},
        {"$set": {"status": payload.status, "updated_at": now_utc()}},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Task not found")
    return task_out(updated)


async def delete_task(db: MongoManager, business: dict, task_id: str) -> DeleteTaskResponse:
    deleted = await db.campaign_tasks.find_one_and_delete(
        {"_id": as_oid(task_id, "task id"), "business_id": business["_id"]}
    )
    if not deleted:
        raise HTTPException(status_code=404, detail="Task not found")

    logging.info("Business %s deleted task %s", business["_id"], deleted["_id"])
    return DeleteTaskResponse()


# -----------------------------
# Completions
# -----------------------------
async def list_completions(
    db: MongoManager, user: dict, task_id: Optional[str] = None, user_id: Optional[str] = None
) -> List[CompletionOut]:
    if task_id:
        task = await db.campaign_tasks.find_one({"_id": as_oid(task_id, "task id")}, {"business_id": 1})
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        if task.get("business_id") != user["_id"]:
            raise HTTPException(status_code=403, detail="Only the task's business can list its submissions")
        query = {"task_id": task["_id"]}
    elif user_id:
        if as_oid(user_id, "user id") != user["_id"]:
            raise HTTPException(status_code=403, detail="You can only list your own submissions")
        query = {"user_id": user["_id"]}
    else:
        raise HTTPException(status_code=400, detail="Either user_id or task_id is required")

    cursor = db.task_completions.find(query).sort(NEWEST_FIRST)
    return [completion_out(doc) async for doc in cursor]


async def submit_completion(db: MongoManager, user: dict, payload: CompletionCreateRequest) -> CompletionOut:
    task = await db.campaign_tasks.find_one({"_id": as_oid(payload.task_id, "task id")})
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    if task.get("status") != TaskStatus.ACTIVE.value:
        raise HTTPException(status_code=400, detail="Task is not active")

    doc = TaskCompletionModel(
        task_id=task["_id"],
        campaign_id=task["campaign_id"],
        business_id=task["business_id"],
        user_id=user["_id"],
        proof=payload.proof,
        submission_data=payload.submission_data,
        points=task.get("points") or 0,
    ).model_dump(by_alias=True, exclude_none=True)
    try:
        result = await db.task_completions.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="You have already submitted this task")
    doc["_id"] = result.inserted_id

    logging.info("User %s submitted task %s", user["_id"], task["_id"])
    return completion_out(doc)


async def _review(db: MongoManager, business: dict, completion: dict, payload: CompletionUpdateRequest) -> dict:
    if completion.get("business_id") != business["_id"]:
        raise HTTPException(status_code=403, detail="Only the task's business can review submissions")

    changes = {"status": payload.status, "reviewed_at": now_utc(), "updated_at": now_utc()}
    if payload.status == CompletionStatus.APPROVED.value:
        changes["reward_status"] = TaskRewardStatus.ISSUED.value

    reviewed = await db.task_completions.find_one_and_update(
        {"_id": completion["_id"], "status": CompletionStatus.PENDING.value},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not reviewed:
        raise HTTPException(status_code=400, detail="Submission has already been reviewed")

    logging.info("Business %s marked submission %s %s", business["_id"], completion["_id"], payload.status)
    return reviewed


async def _claim(db: MongoManager, user: dict, completion: dict, payload: CompletionUpdateRequest) -> dict:
    if completion.get("user_id") != user["_id"]:
        raise HTTPException(status_code=403, detail="You can only claim your own rewards")

    now = now_utc()
    changes = {"reward_status": TaskRewardStatus.CLAIMED.value, "claimed_at": now, "updated_at": now}
    if payload.payout_method:
        changes["payout_method"] = payload.payout_method
    if payload.payout_details:
        changes["payout_details"] = payload.payout_details

    claimed = await db.task_completions.find_one_and_update(
        {"_id": completion["_id"], "reward_status": TaskRewardStatus.ISSUED.value},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not claimed:
        raise HTTPException(status_code=400, detail="Reward not issued or already claimed")

    logging.info("User %s claimed %s points for submission %s", user["_id"], claimed.get("points"), completion["_id"])
    return claimed


async def update_completion(db: MongoManager, user: dict, payload: CompletionUpdateRequest) -> CompletionUpdateResponse:
    """
    ``status`` set: the business reviews a pending submission. Approval
    issues the task's points. Without ``status`` the submitter claims them.
    """
    completion = await db.task_completions.find_one({"_id": as_oid(payload.completion_id, "completion id")})
    if not completion:
        raise HTTPException(status_code=404, detail="Completion not found")

    if payload.status:
        updated = await _review(db, user, completion, payload)
    else:
        updated = await _claim(db, user, completion, payload)
    return CompletionUpdateResponse(completion=completion_out(updated))
