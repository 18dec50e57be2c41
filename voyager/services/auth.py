"""Authentication domain logic: login, password change and the OTP reset flow."""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException, status

from voyager.core.config import settings
from voyager.core.security import create_access_token, verify_password
from voyager.core.tokens import TokenService
from voyager.db.models import User
from voyager.schemas.auth import PasswordChange, UserLogin
from voyager.services.directory import UserDirectory
from voyager.services.email import EmailSender
from voyager.services.reset_ledger import ResetTokenLedger

logger = logging.getLogger("voyager.auth")


class AuthService:
    """High-level service used by API routes; holds the directory, token service and mailer."""

    def __init__(
        self,
        directory: UserDirectory,
        tokens: TokenService,
        mailer: EmailSender,
        ledger: Optional[ResetTokenLedger] = None,
    ):
        self.directory = directory
        self.tokens = tokens
        self.mailer = mailer
        self.ledger = ledger

    async def login(self, payload: UserLogin) -> str:
        """Check credentials and mint a bearer access token."""

        user = await self.directory.find_by_email(payload.email)
        if not user or not verify_password(payload.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password.",
            )

        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        return create_access_token(subject=str(user.id), expires_delta=expires_delta)

    async def change_password(self, user: User, payload: PasswordChange) -> None:
        if payload.new_password != payload.confirm_password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New passwords do not match.")
        if len(payload.new_password) < settings.MIN_CHANGE_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Password must be at least {settings.MIN_CHANGE_PASSWORD_LENGTH} characters.",
            )
        if not verify_password(payload.current_password, user.hashed_password):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect.")

        await self.directory.update_password(user.id, payload.new_password)

    async def send_reset_code(self, email: str) -> str:
        """Issue an OTP token for `email` and mail the code when an account exists.

        The response is the same whether or not the address is known or the
        mail went out, so the endpoint cannot be used to probe accounts.
        """

        grant = self.tokens.issue(email)
        user = await self.directory.find_by_email(grant.email)
        if user is None:
            logger.info("Reset code requested for unknown address")
            return grant.token

        sent, err = await self.mailer.send_reset_code(user.email, grant.code)
        if not sent:
            logger.error("Reset code for user id=%s was not delivered: %s", user.id, err)
        return grant.token

    def verify_reset_code(self, otp_token: str, code: str) -> str:
        """Exchange a valid OTP token and code for a reset token."""

        reset_token = self.tokens.verify_and_promote(otp_token, code)
        if reset_token is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired code")
        return reset_token

    async def reset_password(self, reset_token: str, new_password: str) -> None:
        """Set a new password for the account certified by `reset_token`."""

        if len(new_password) < settings.MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
            )

        email = self.tokens.authorize_reset(reset_token)
        if email is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

        user = await self.directory.find_by_email(email)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        if self.ledger is not None:
            if not await self.ledger.consume(reset_token, ttl=self.tokens.reset_ttl):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")
            try:
                await self.directory.update_password(user.id, new_password)
            except Exception:
                await self.ledger.release(reset_token)
                raise
            return

        await self.directory.update_password(user.id, new_password)
