# refhub/controllers/coupon_controller.py
from typing import Optional

from ..schemas.reporting_schema import Coupon, CouponsResponse

# Fixed partner catalog; there is no upstream coupon feed.
COUPON_CATALOG = [
    Coupon(
        id="coupon-001",
        title="20% Off Your First Purchase",
        description="Get 20% off your first purchase at any participating store",
        category="Retail",
        code="FIRST20",
        expiry_date="2023-12-31",
        discount="20%",
    ),
    Coupon(
        id="coupon-002",
        title="Free Shipping",
        description="Free shipping on all orders over $50",
        category="E-commerce",
        code="FREESHIP50",
        expiry_date="2023-11-30",
        discount="Free Shipping",
    ),
    Coupon(
        id="coupon-003",
        title="$10 Off Your Next Order",
        description="Get $10 off your next order of $100 or more",
        category="Food & Dining",
        code="SAVE10",
        expiry_date="2023-10-15",
        discount="$10",
    ),
    Coupon(
        id="coupon-004",
        title="Buy One Get One Free",
        description="Buy one item and get another of equal or lesser value for free",
        category="Retail",
        code="BOGOF2023",
        expiry_date="2023-09-30",
        discount="BOGO",
    ),
    Coupon(
        id="coupon-005",
        title="30% Off Selected Items",
        description="Get 30% off selected items in our summer collection",
        category="Fashion",
        code="SUMMER30",
        expiry_date="2023-08-31",
        discount="30%",
    ),
]


def list_coupons(category: Optional[str] = None, limit: int = 10) -> CouponsResponse:
    coupons = COUPON_CATALOG
    if category:
        needle = category.strip().lower()
        coupons = [c for c in coupons if needle in c.category.lower()]
    return CouponsResponse(coupons=coupons[:limit])
