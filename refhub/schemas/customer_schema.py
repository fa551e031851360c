# refhub/schemas/customer_schema.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ._base import PyObjectId

ContactStatusName = Literal["active", "inactive", "lead"]


def _clean_tags(v):
    if v is None:
        return v
    return [t.strip() for t in v if t and t.strip()]


# ---------- Requests ----------
class CustomerCreateRequest(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: ContactStatusName = "lead"

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()

    @field_validator("tags", mode="after")
    @classmethod
    def _tags(cls, v):
        return _clean_tags(v)


class CustomerUpdateRequest(BaseModel):
    """Only the fields sent are written."""
    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[ContactStatusName] = None
    last_contacted_at: Optional[datetime] = None

    @field_validator("name", "email", "status", mode="before")
    @classmethod
    def _not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return v.lower() if v else v

    @field_validator("tags", mode="after")
    @classmethod
    def _tags(cls, v):
        return _clean_tags(v)


# ---------- Responses ----------
class CustomerOut(BaseModel):
    id: PyObjectId
    business_id: PyObjectId
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: str
    last_contacted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BulkImportResponse(BaseModel):
    success: bool = True
    inserted: int
    modified: int
    total: int


class DeleteCustomerResponse(BaseModel):
    success: bool = True
