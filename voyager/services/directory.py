"""User directory: account lookup, password updates and team membership."""

import logging
from typing import Sequence

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voyager.core.security import get_password_hash
from voyager.core.tokens import canonical_email
from voyager.db.models import ROLE_ADMIN, ROLE_MEMBER, User

logger = logging.getLogger("voyager.directory")

ROLES = (ROLE_ADMIN, ROLE_MEMBER)


class UserDirectory:
    """Thin data-access layer over the `users` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> User | None:
        return await self.session.scalar(select(User).where(func.lower(User.email) == canonical_email(email)))

    async def get(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def update_password(self, user_id: int, new_password: str) -> User:
        user = await self.get(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        user.hashed_password = get_password_hash(new_password)
        await self.session.commit()
        await self.session.refresh(user)
        logger.info("Password updated for user id=%s", user_id)
        return user

    async def update_profile(self, user: User, full_name: str) -> User:
        user.full_name = full_name.strip()
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def list_members(self) -> Sequence[User]:
        result = await self.session.scalars(select(User).order_by(User.created_at, User.id))
        return result.all()

    async def create_member(self, email: str, password: str, role: str = ROLE_MEMBER, full_name: str = "") -> User:
        if role not in ROLES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown role.")
        email = canonical_email(email)
        if await self.find_by_email(email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="An account with this email already exists.",
            )
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=role,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="An account with this email already exists.",
            ) from exc
        await self.session.refresh(user)
        logger.info("Created %s account %s", role, email)
        return user

    async def set_role(self, user_id: int, role: str) -> User:
        if role not in ROLES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown role.")
        user = await self.get(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        user.role = role
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def delete(self, user_id: int) -> None:
        user = await self.get(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        await self.session.delete(user)
        await self.session.commit()
        logger.info("Deleted account id=%s", user_id)

    async def ensure_admin(self, email: str, password: str) -> User:
        """Create the bootstrap admin if it does not exist yet."""
        existing = await self.find_by_email(email)
        if existing is not None:
            return existing
        return await self.create_member(email, password, role=ROLE_ADMIN, full_name="Administrator")
