# refhub/utils/jwt_utils.py
from datetime import timedelta
from typing import Optional

from jose import jwt

from ..config import JWT_ALGORITHM, JWT_EXPIRE_DAYS, JWT_SECRET_KEY
from .datetime_utils import now_utc


def create_jwt_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = now_utc() + (expires_delta or timedelta(days=JWT_EXPIRE_DAYS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_jwt_token(token: str) -> dict:
    return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
