# refhub/routes/auth.py
from fastapi import APIRouter, Depends

from ..controllers.auth_controller import (
    get_authenticated_user,
    login_with_email_password,
    register_user,
)
from ..db.mongo import MongoManager, get_db
from ..schemas.auth_schema import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    UserOut,
)
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=201, response_model=RegisterResponse, summary="Create an account")
async def register(payload: RegisterRequest, db: MongoManager = Depends(get_db)):
    return await register_user(db, payload)


@router.post("/login", response_model=AuthResponse, summary="Login with email and password")
async def login(payload: LoginRequest, db: MongoManager = Depends(get_db)):
    return await login_with_email_password(db, payload)


@router.get("/me", response_model=UserOut, summary="Get authenticated user")
async def get_me(current_user: dict = Depends(get_current_user)):
    return await get_authenticated_user(current_user)
