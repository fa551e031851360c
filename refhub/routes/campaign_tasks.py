# refhub/routes/campaign_tasks.py
from typing import List

from fastapi import APIRouter, Depends, Query

from ..controllers.task_controller import create_task, delete_task, list_tasks, update_task_status
from ..db.mongo import MongoManager, get_db
from ..schemas.task_schema import DeleteTaskResponse, TaskCreateRequest, TaskOut, TaskStatusUpdateRequest
from ..utils.auth_utils import get_current_user, require_role

router = APIRouter(prefix="/campaign-tasks", tags=["Campaign tasks"])

business_only = require_role("business")


@router.get("", response_model=List[TaskOut], summary="Tasks of a campaign (newest first)")
async def list_for_campaign(
    campaign_id: str = Query(...),
    user: dict = Depends(get_current_user),
    db: MongoManager = Depends(get_db),
):
    return await list_tasks(db, user, campaign_id)


@router.post("", status_code=201, response_model=TaskOut, summary="Add a task to one of my campaigns")
async def create(payload: TaskCreateRequest, business: dict = Depends(business_only), db: MongoManager = Depends(get_db)):
    return await create_task(db, business, payload)


@router.patch("", response_model=TaskOut, summary="Activate or deactivate a task")
async def set_status(
    payload: TaskStatusUpdateRequest,
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await update_task_status(db, business, payload)


@router.delete("", response_model=DeleteTaskResponse, summary="Delete a task")
async def delete(
    task_id: str = Query(...),
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await delete_task(db, business, task_id)
