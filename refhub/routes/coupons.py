# refhub/routes/coupons.py
from typing import Optional

from fastapi import APIRouter, Query

from ..controllers.coupon_controller import list_coupons
from ..schemas.reporting_schema import CouponsResponse

router = APIRouter(prefix="/coupons", tags=["Coupons"])


@router.get("", response_model=CouponsResponse, summary="Partner coupon catalog")
async def coupons(category: Optional[str] = None, limit: int = Query(default=10, ge=1, le=100)):
    return list_coupons(category, limit)
