# refhub/schemas/auth_schema.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ._base import PyObjectId

RegisterRole = Literal["business", "referrer", "customer", "admin"]


# ✅ Request Schemas
class RegisterRequest(BaseModel):
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)
    name: str = Field(..., min_length=1)
    role: RegisterRole
    business_name: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None

    @field_validator("name", "business_name", "company", "website", mode="before")
    @classmethod
    def _trim(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()

    @model_validator(mode="after")
    def _role_fields(self):
        if self.role == "business" and not self.business_name:
            raise ValueError("Business name is required for business accounts")
        if self.role == "referrer" and not self.company:
            raise ValueError("Company name is required for referrer accounts")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    role: Optional[RegisterRole] = None

    @field_validator("email", mode="after")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()


# ✅ Response Schemas
class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user_id: PyObjectId


class UserOut(BaseModel):
    id: PyObjectId
    email: EmailStr
    name: Optional[str] = None
    role: str
    business_name: Optional[str] = None
    company: Optional[str] = None
    business_id: Optional[PyObjectId] = None
    referral_code: Optional[str] = None
    website: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    token: str
    user: UserOut
