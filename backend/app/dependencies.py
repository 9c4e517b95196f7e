"""
Blogstack Backend — Shared FastAPI Dependencies
==================================================

What:  Request-scoped dependencies shared by several routers.
Who:   Injected with Depends() into route handlers.

Token transport:
    x-auth-token: <token>            (what the browser client sends)
    Authorization: Bearer <token>    (accepted for API tooling)
    When both are present, x-auth-token wins.
"""

from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import AuthenticationError
from app.models.user import User
from app.services.auth_service import auth_service

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    x_auth_token: Optional[str] = Header(default=None),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Resolve the caller's session token to a User.

    Raises:
        AuthenticationError (401): no token, invalid/expired token, or deleted user.
    """
    token = x_auth_token or (creds.credentials if creds else None)
    if not token:
        raise AuthenticationError(message="No token, authorization denied")
    return await auth_service.authenticate(db, token)
