"""
Blogstack Backend — Authentication Route Handlers
====================================================

What:  POST /api/auth/signup, POST /api/auth/login, GET /api/auth/user.
How:   Bodies are validated by the pydantic schemas; AuthService does the work.
Who:   Called by the browser client's login/register forms and on page load
       (GET /api/auth/user restores the session from a stored token).
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import LoginRequest, SignupRequest, TokenResponse, UserResponse
from app.schemas.blog import ErrorResponse
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=TokenResponse,
    responses={
        201: {"description": "Account created", "model": TokenResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        422: {"description": "Invalid name, email or password"},
    },
    summary="Register a new account",
    description="Creates an account and returns a session token for it.",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    return await auth_service.signup(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        200: {"description": "Credentials accepted", "model": TokenResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """
    Exchange credentials for a session token.

    Unknown email and wrong password produce the same 401 body, so the
    endpoint cannot be used to probe which emails are registered.
    """
    return await auth_service.login(db, payload)


@router.get(
    "/user",
    response_model=UserResponse,
    responses={
        200: {"description": "The authenticated user", "model": UserResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Get the current user",
    description="Returns the account the session token belongs to (never the password hash).",
)
async def current_user(user: User = Depends(get_current_user)) -> UserResponse:
    return auth_service.to_response(user)
