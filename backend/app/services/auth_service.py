"""
Blogstack Backend — Authentication Service
=============================================

What:  Account creation, credential checks, and session token issue/validation.
How:   Passwords are hashed with bcrypt. Session tokens are HS256 JWTs (PyJWT)
       signed with settings.jwt_secret.
Who:   Called by the /api/auth routes and by the get_current_user dependency.

Token payload:
    {
        "sub":  "<user id>",
        "user": {"id": "<user id>", "name": "Ada", "email": "ada@example.com"},
        "iat":  1700000000,
        "exp":  1700018000
    }
    The `user` claim lets a client show who is logged in (and decide whether
    the viewer authored a post) without an extra request. The server never
    trusts it: every request re-loads the user named by `sub`.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import UUID

import bcrypt
import jwt
from jwt import InvalidTokenError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import AuthenticationError, ConflictError
from app.models.user import User
from app.schemas.auth import LoginRequest, SignupRequest, TokenResponse, UserResponse

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Token is not valid"


class AuthService:
    """
    Business logic for authentication.

    Responsibilities:
        - signup(): create an account and return a session token
        - login(): verify credentials and return a session token
        - authenticate(): resolve a token to its User
    """

    # ── Passwords ─────────────────────────────────────────────────────────

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """Return True if `password` matches; malformed hashes count as a mismatch."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

    # ── Tokens ────────────────────────────────────────────────────────────

    @staticmethod
    def issue_token(user: User) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(user.id),
            "user": {"id": str(user.id), "name": user.name, "email": user.email},
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=settings.jwt_expires_seconds)).timestamp()),
        }
        return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry.

        Raises:
            AuthenticationError: Token is malformed, tampered with, or expired.
        """
        try:
            return jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except InvalidTokenError as e:
            logger.info("Rejected session token: %s", str(e))
            raise AuthenticationError(message=INVALID_TOKEN, context={"reason": str(e)}) from e

    # ── Account operations ────────────────────────────────────────────────

    async def signup(self, db: AsyncSession, payload: SignupRequest) -> TokenResponse:
        """
        Create an account.

        Raises:
            ConflictError: The email is already registered.
        """
        email = payload.email.lower()
        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(message="User already exists", context={"email": email})

        user = User(
            name=payload.name,
            email=email,
            password_hash=self.hash_password(payload.password),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            # Concurrent signup with the same email won the race
            raise ConflictError(message="User already exists", context={"email": email}) from e

        logger.info("User registered: %s", user.id)
        return TokenResponse(token=self.issue_token(user))

    async def login(self, db: AsyncSession, payload: LoginRequest) -> TokenResponse:
        """
        Raises:
            AuthenticationError: Unknown email or wrong password (same message for both).
        """
        email = payload.email.lower()
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None or not self.verify_password(payload.password, user.password_hash):
            logger.info("Failed login attempt for %s", email)
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        logger.info("User logged in: %s", user.id)
        return TokenResponse(token=self.issue_token(user))

    async def authenticate(self, db: AsyncSession, token: str) -> User:
        """
        Resolve a session token to the User it was issued for.

        Raises:
            AuthenticationError: Token invalid, or its user no longer exists.
        """
        claims = self.decode_token(token)
        try:
            user_id = UUID(str(claims["sub"]))
        except ValueError as e:
            raise AuthenticationError(message=INVALID_TOKEN, context={"reason": "bad subject"}) from e

        user = await db.get(User, user_id)
        if user is None:
            raise AuthenticationError(message=INVALID_TOKEN, context={"reason": "unknown user"})
        return user

    @staticmethod
    def to_response(user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
