"""Dependency providers used by FastAPI endpoints.

These helpers expose database sessions, the token service, the mailer and
composed services through FastAPI's dependency injection system so route
handlers remain thin. Tests override them with `app.dependency_overrides`.
"""

from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from voyager.core.config import settings
from voyager.core.security import decode_access_token
from voyager.core.tokens import TokenService
from voyager.db.models import User
from voyager.db.session import get_session
from voyager.services.auth import AuthService
from voyager.services.blog import BlogService
from voyager.services.directory import UserDirectory
from voyager.services.email import EmailSender
from voyager.services.media import CloudinaryUploader
from voyager.services.reset_ledger import ResetTokenLedger, get_redis_client

http_bearer = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async SQLAlchemy session tied to the shared engine."""

    async for session in get_session():
        yield session


@lru_cache
def get_token_service() -> TokenService:
    """Token service keyed with the process-wide reset secret."""
    return TokenService(
        settings.reset_token_secret,
        otp_ttl=settings.OTP_TTL_SECONDS,
        reset_ttl=settings.RESET_TTL_SECONDS,
    )


def get_email_sender() -> EmailSender:
    return EmailSender()


def get_uploader() -> CloudinaryUploader:
    return CloudinaryUploader()


def get_reset_ledger() -> Optional[ResetTokenLedger]:
    """Ledger for single-use reset tokens, or None when Redis is not configured."""
    client = get_redis_client()
    return ResetTokenLedger(client) if client is not None else None


def get_user_directory(session: AsyncSession = Depends(get_db_session)) -> UserDirectory:
    return UserDirectory(session)


def get_blog_service(session: AsyncSession = Depends(get_db_session)) -> BlogService:
    return BlogService(session)


def get_auth_service(
    directory: UserDirectory = Depends(get_user_directory),
    tokens: TokenService = Depends(get_token_service),
    mailer: EmailSender = Depends(get_email_sender),
    ledger: Optional[ResetTokenLedger] = Depends(get_reset_ledger),
) -> AuthService:
    """Assemble AuthService from the directory, token service, mailer and optional ledger."""

    return AuthService(directory=directory, tokens=tokens, mailer=mailer, ledger=ledger)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    directory: UserDirectory = Depends(get_user_directory),
) -> User:
    """Resolve the bearer token to a staff account, or answer 401."""

    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    subject = decode_access_token(credentials.credentials)
    if subject is None or not subject.isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    user = await directory.get(int(subject))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user
