# refhub/utils/auth_utils.py
from __future__ import annotations

from typing import Optional

from bson import ObjectId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from ..config import JWT_SECRET_KEY
from ..db.mongo import MongoManager, get_db
from .jwt_utils import decode_jwt_token

# Missing headers are turned into 401 below rather than by the scheme itself
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------
def _user_id_from_token(token: str) -> str:
    if not JWT_SECRET_KEY:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="JWT secret not configured.")
    try:
        payload = decode_jwt_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token.")

    user_id = payload.get("user_id")
    if not user_id or not ObjectId.is_valid(user_id):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload.")
    return user_id


async def _load_user_or_401(db: MongoManager, user_id: str) -> dict:
    user = await db.users.find_one({"_id": ObjectId(user_id)}, {"password": 0})
    if not user:
        # account deleted after the token was issued
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found.")
    return user


# ------------------------------------------------------------------
# Public dependencies
# ------------------------------------------------------------------
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: MongoManager = Depends(get_db),
) -> dict:
    """
    Validates the Bearer JWT and loads the user document (password stripped).
    The stored role is authoritative, not whatever the token claims.
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated.")
    user_id = _user_id_from_token(credentials.credentials)
    return await _load_user_or_401(db, user_id)


def require_role(*roles: str):
    """
    Dependency factory: ``Depends(require_role("business"))``.
    """
    async def _checker(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user.get("role") not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {' or '.join(roles)} accounts can do this.",
            )
        return current_user

    return _checker


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: MongoManager = Depends(get_db),
) -> Optional[dict]:
    """
    Optional auth: returns a user doc if a valid Bearer token is present; otherwise None.
    Never raises for a missing/invalid token.
    """
    if not credentials:
        return None
    try:
        user_id = _user_id_from_token(credentials.credentials)
        return await _load_user_or_401(db, user_id)
    except HTTPException:
        return None
