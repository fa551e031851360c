# refhub/routes/referrals.py
from typing import Optional

from fastapi import APIRouter, Depends

from ..controllers.lead_controller import submit_lead, track_click
from ..controllers.referral_controller import process_public_link
from ..db.mongo import MongoManager, get_db
from ..schemas.referral_schema import (
    PublicProcessRequest,
    PublicProcessResponse,
    SubmitLeadRequest,
    SubmitLeadResponse,
    TrackClickRequest,
    TrackClickResponse,
)
from ..utils.auth_utils import get_optional_user

router = APIRouter(prefix="/referrals", tags=["Referrals"])


@router.post("/process", response_model=PublicProcessResponse, summary="Landing page hit for a referral code")
async def process(
    payload: PublicProcessRequest,
    user: Optional[dict] = Depends(get_optional_user),
    db: MongoManager = Depends(get_db),
):
    return await process_public_link(db, payload.code, user)


@router.post("/submit", response_model=SubmitLeadResponse, summary="Lead form: refer someone by email")
async def submit(payload: SubmitLeadRequest, db: MongoManager = Depends(get_db)):
    return await submit_lead(db, payload)


@router.post("/track-click", response_model=TrackClickResponse, summary="Count a visit to a business's referral page")
async def click(payload: TrackClickRequest, db: MongoManager = Depends(get_db)):
    return await track_click(db, payload)
