# refhub/routes/analytics.py
from fastapi import APIRouter, Depends

from ..controllers.reporting_controller import get_business_analytics
from ..db.mongo import MongoManager, get_db
from ..schemas.reporting_schema import AnalyticsResponse
from ..utils.auth_utils import require_role

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("", response_model=AnalyticsResponse, summary="Referral performance across my campaigns")
async def business_analytics(business: dict = Depends(require_role("business")), db: MongoManager = Depends(get_db)):
    return await get_business_analytics(db, business)
