# refhub/models/user_model.py
from datetime import datetime
from enum import Enum
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, EmailStr, Field

from ..utils.datetime_utils import now_utc


class UserRole(str, Enum):
    BUSINESS = "business"
    REFERRER = "referrer"
    CUSTOMER = "customer"
    ADMIN = "admin"


class UserModel(BaseModel):
    """
    Stored user document. Role-specific fields are optional; role never changes
    after registration.
    """
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    email: EmailStr
    password: str
    name: str
    role: UserRole

    # business
    business_name: Optional[str] = None
    website: Optional[str] = None

    # referrer
    company: Optional[str] = None
    business_id: Optional[ObjectId] = None
    referral_code: Optional[str] = None
    earnings: Optional[float] = None

    # customer
    referred_by: Optional[ObjectId] = None

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "use_enum_values": True,
        "validate_default": True,
        "extra": "ignore",
    }
