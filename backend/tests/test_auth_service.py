"""
Blogstack Backend — Auth Service Unit Tests
==============================================

What:  Password hashing, token issue/validation, and account operations.
How:   Real bcrypt and PyJWT; the database session is an AsyncMock.
"""

import time
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

import jwt
import pytest

from app.config import settings
from app.exceptions import AuthenticationError, ConflictError
from app.models.user import User
from app.schemas.auth import LoginRequest, SignupRequest
from app.services.auth_service import AuthService


def make_user(password: str = "secret1") -> User:
    return User(
        id=uuid.uuid4(),
        name="Ada",
        email="ada@example.com",
        password_hash=AuthService.hash_password(password),
        created_at=datetime.now(timezone.utc),
    )


class TestPasswords:

    def test_hash_roundtrip(self):
        hashed = AuthService.hash_password("secret1")
        assert hashed != "secret1"
        assert AuthService.verify_password("secret1", hashed)
        assert not AuthService.verify_password("secret2", hashed)

    def test_malformed_hash_is_a_mismatch(self):
        assert AuthService.verify_password("secret1", "not-a-bcrypt-hash") is False


class TestTokens:

    def test_issue_token_claims(self):
        user = make_user()
        claims = AuthService.decode_token(AuthService.issue_token(user))

        assert claims["sub"] == str(user.id)
        assert claims["user"] == {"id": str(user.id), "name": "Ada", "email": "ada@example.com"}
        assert claims["exp"] - claims["iat"] == settings.jwt_expires_seconds

    def test_tampered_token_rejected(self):
        token = AuthService.issue_token(make_user())
        forged = jwt.encode(jwt.decode(token, options={"verify_signature": False}), "wrong-secret", algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Token is not valid"):
            AuthService.decode_token(forged)

    def test_expired_token_rejected(self):
        now = int(time.time())
        expired = jwt.encode(
            {"sub": str(uuid.uuid4()), "iat": now - 7200, "exp": now - 3600},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Token is not valid"):
            AuthService.decode_token(expired)

    def test_token_without_subject_rejected(self):
        now = int(time.time())
        token = jwt.encode({"iat": now, "exp": now + 60}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(AuthenticationError):
            AuthService.decode_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            AuthService.decode_token("not.a.jwt")


class TestAccountOperations:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_signup_creates_user_and_returns_token(self, mock_db_session):
        mock_db_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=None))

        result = await self.service.signup(
            mock_db_session,
            SignupRequest(name="  Ada  ", email="Ada@Example.com", password="secret1"),
        )

        added = mock_db_session.add.call_args[0][0]
        assert added.name == "Ada"
        assert added.email == "ada@example.com"
        assert AuthService.verify_password("secret1", added.password_hash)
        mock_db_session.flush.assert_awaited_once()
        assert AuthService.decode_token(result.token)["user"]["email"] == "ada@example.com"

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, mock_db_session):
        mock_db_session.execute.return_value = MagicMock(
            scalar_one_or_none=MagicMock(return_value=uuid.uuid4())
        )

        with pytest.raises(ConflictError, match="User already exists"):
            await self.service.signup(
                mock_db_session,
                SignupRequest(name="Ada", email="ada@example.com", password="secret1"),
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_success(self, mock_db_session):
        user = make_user()
        mock_db_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=user))

        result = await self.service.login(mock_db_session, LoginRequest(email="ADA@example.com", password="secret1"))

        assert AuthService.decode_token(result.token)["sub"] == str(user.id)

    @pytest.mark.asyncio
    async def test_login_wrong_password_and_unknown_email_look_the_same(self, mock_db_session):
        mock_db_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=make_user()))
        with pytest.raises(AuthenticationError) as wrong_password:
            await self.service.login(mock_db_session, LoginRequest(email="ada@example.com", password="nope123"))

        mock_db_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=None))
        with pytest.raises(AuthenticationError) as unknown_email:
            await self.service.login(mock_db_session, LoginRequest(email="bob@example.com", password="secret1"))

        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_authenticate_resolves_user(self, mock_db_session):
        user = make_user()
        mock_db_session.get.return_value = user

        assert await self.service.authenticate(mock_db_session, AuthService.issue_token(user)) is user
        mock_db_session.get.assert_awaited_once_with(User, user.id)

    @pytest.mark.asyncio
    async def test_authenticate_deleted_user(self, mock_db_session):
        mock_db_session.get.return_value = None
        with pytest.raises(AuthenticationError, match="Token is not valid"):
            await self.service.authenticate(mock_db_session, AuthService.issue_token(make_user()))

    def test_to_response_hides_password(self):
        payload = AuthService.to_response(make_user()).model_dump(by_alias=True)
        assert set(payload) == {"_id", "name", "email", "createdAt"}
