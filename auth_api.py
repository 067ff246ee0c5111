"""
Auth API Module
Registration, login, and the caller's own profile.

Import this into api_server.py to add the routes. The login route is rate
limited per client address with slowapi; api_server.py installs the
limiter on the app.
"""

from fastapi import APIRouter, Depends, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import get_db
from dependencies import CurrentActor, CurrentUser
from schemas.response import APIResponse
from schemas.security import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserRead,
)
from services.user_service import UserService

auth_router = APIRouter(prefix="/api/auth", tags=["Authentication"])

settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.security.rate_limit_enabled,
)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _auth_payload(service: UserService, user) -> AuthResponse:
    return AuthResponse(user=UserRead.model_validate(user), token=service.issue_token(user))


@auth_router.post(
    "/register",
    response_model=APIResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    service: UserService = Depends(get_user_service),
):
    """
    Public sign-up. Only the user and technician roles can be self-assigned.
    """
    user = await service.register(payload)
    return APIResponse.success(_auth_payload(service, user))


@auth_router.post("/login", response_model=APIResponse[AuthResponse])
@limiter.limit(settings.security.login_rate_limit)
async def login(
    request: Request,
    payload: LoginRequest,
    service: UserService = Depends(get_user_service),
):
    user = await service.authenticate(payload.email, payload.password.get_secret_value())
    return APIResponse.success(_auth_payload(service, user))


@auth_router.get("/me", response_model=APIResponse[UserRead])
async def get_me(user: CurrentUser):
    return APIResponse.success(UserRead.model_validate(user))


@auth_router.put("/profile", response_model=APIResponse[UserRead])
async def update_profile(
    patch: ProfileUpdate,
    actor: CurrentActor,
    service: UserService = Depends(get_user_service),
):
    user = await service.update_profile(actor, patch)
    return APIResponse.success(UserRead.model_validate(user))
