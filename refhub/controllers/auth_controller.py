# refhub/controllers/auth_controller.py
import logging
import re
import secrets
import string
from typing import Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo.errors import DuplicateKeyError

from ..db.mongo import MongoManager
from ..models.user_model import UserModel, UserRole
from ..schemas.auth_schema import AuthResponse, LoginRequest, RegisterRequest, RegisterResponse, UserOut
from ..utils.hashing import hash_password, verify_password
from ..utils.jwt_utils import create_jwt_token

_CODE_CHARS = string.ascii_uppercase + string.digits


# -----------------------
# Helpers
# -----------------------
def _generate_referral_code(name: str) -> str:
    prefix = re.sub(r"[^A-Za-z]", "", name or "")[:3].upper() or "REF"
    suffix = "".join(secrets.choice(_CODE_CHARS) for _ in range(5))
    return f"{prefix}-{suffix}"


async def _match_business_for_company(db: MongoManager, company: str) -> Optional[ObjectId]:
    """
    Best-effort link from a referrer's free-text company to a business account:
    exact business_name first, then a case-insensitive substring match.
    """
    exact = await db.users.find_one({"role": UserRole.BUSINESS.value, "business_name": company}, {"_id": 1})
    if exact:
        return exact["_id"]

    fuzzy = await db.users.find_one(
        {
            "role": UserRole.BUSINESS.value,
            "business_name": {"$regex": re.escape(company), "$options": "i"},
        },
        {"_id": 1},
    )
    if fuzzy:
        return fuzzy["_id"]

    logging.info("No business matches referrer company %r", company)
    return None


def user_out(user: dict) -> UserOut:
    return UserOut(
        id=user["_id"],
        email=user["email"],
        name=user.get("name"),
        role=user.get("role"),
        business_name=user.get("business_name"),
        company=user.get("company"),
        business_id=user.get("business_id"),
        referral_code=user.get("referral_code"),
        website=user.get("website"),
        created_at=user.get("created_at"),
    )


# -----------------------
# Register
# -----------------------
async def register_user(db: MongoManager, payload: RegisterRequest) -> RegisterResponse:
    if await db.users.find_one({"email": payload.email}, {"_id": 1}):
        raise HTTPException(status_code=409, detail="User already exists")

    fields = {
        "email": payload.email,
        "password": hash_password(payload.password),
        "name": payload.name,
        "role": payload.role,
    }
    if payload.role == UserRole.BUSINESS.value:
        fields["business_name"] = payload.business_name
        fields["website"] = payload.website
        # the business code referrers put on the lead form
        fields["referral_code"] = _generate_referral_code(payload.business_name)
    elif payload.role == UserRole.REFERRER.value:
        fields["company"] = payload.company
        fields["business_id"] = await _match_business_for_company(db, payload.company)
        fields["referral_code"] = _generate_referral_code(payload.name)
        fields["earnings"] = 0

    doc = UserModel(**fields).model_dump(by_alias=True, exclude_none=True)
    try:
        result = await db.users.insert_one(doc)
    except DuplicateKeyError:
        # Lost a race against another registration with the same email
        raise HTTPException(status_code=409, detail="User already exists")

    logging.info("Registered %s user %s", payload.role, result.inserted_id)
    return RegisterResponse(message="User registered successfully", user_id=result.inserted_id)


# -----------------------
# Login
# -----------------------
async def login_with_email_password(db: MongoManager, payload: LoginRequest) -> AuthResponse:
    query = {"email": payload.email}
    if payload.role:
        query["role"] = payload.role

    user = await db.users.find_one(query)
    if not user or not verify_password(payload.password, user.get("password", "")):
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    token = create_jwt_token({"user_id": str(user["_id"]), "role": user.get("role")})
    return AuthResponse(token=token, user=user_out(user))


async def get_authenticated_user(current_user: dict) -> UserOut:
    return user_out(current_user)
