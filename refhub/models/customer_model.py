# refhub/models/customer_model.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, Field

from ..utils.datetime_utils import now_utc


class ContactStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    LEAD = "lead"


class BusinessCustomerModel(BaseModel):
    """
    A row in a business's own contact list. Not a login: these are people the
    business tracks, unique per (business_id, email).
    """
    id: Optional[ObjectId] = Field(alias="_id", default=None)
    business_id: ObjectId
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: ContactStatus = ContactStatus.LEAD
    last_contacted_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "use_enum_values": True,
        "validate_default": True,
    }
