# refhub/routes/task_completions.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..controllers.task_controller import list_completions, submit_completion, update_completion
from ..db.mongo import MongoManager, get_db
from ..schemas.task_schema import (
    CompletionCreateRequest,
    CompletionOut,
    CompletionUpdateRequest,
    CompletionUpdateResponse,
)
from ..utils.auth_utils import get_current_user, require_role

router = APIRouter(prefix="/task-completions", tags=["Task completions"])

participant_only = require_role("customer", "referrer")


@router.get("", response_model=List[CompletionOut], summary="Submissions for a task, or my own")
async def list_all(
    task_id: Optional[str] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
    user: dict = Depends(get_current_user),
    db: MongoManager = Depends(get_db),
):
    return await list_completions(db, user, task_id, user_id)


@router.post("", status_code=201, response_model=CompletionOut, summary="Submit proof for a task")
async def submit(
    payload: CompletionCreateRequest,
    user: dict = Depends(participant_only),
    db: MongoManager = Depends(get_db),
):
    return await submit_completion(db, user, payload)


@router.patch("", response_model=CompletionUpdateResponse, summary="Review a submission or claim its points")
async def update(
    payload: CompletionUpdateRequest,
    user: dict = Depends(get_current_user),
    db: MongoManager = Depends(get_db),
):
    return await update_completion(db, user, payload)
