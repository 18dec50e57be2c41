"""Administrator-only team management routes."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from voyager.api import deps
from voyager.core.security import generate_password
from voyager.db.models import User
from voyager.schemas.common import Success
from voyager.schemas.team import (
    TeamMember,
    TeamMemberCreate,
    TeamMemberCreated,
    TeamMemberDelete,
    TeamRoleUpdate,
)
from voyager.services.directory import UserDirectory
from voyager.services.email import EmailSender

logger = logging.getLogger("voyager.team")

router = APIRouter(prefix="/team", tags=["team"])


@router.get("", response_model=List[TeamMember])
async def list_members(
    _: User = Depends(deps.require_admin),
    directory: UserDirectory = Depends(deps.get_user_directory),
) -> List[User]:
    return list(await directory.list_members())


@router.post("", response_model=TeamMemberCreated, status_code=status.HTTP_201_CREATED)
async def create_member(
    payload: TeamMemberCreate,
    _: User = Depends(deps.require_admin),
    directory: UserDirectory = Depends(deps.get_user_directory),
    mailer: EmailSender = Depends(deps.get_email_sender),
) -> TeamMemberCreated:
    """Create an account with a generated password, returned once to the admin and mailed to the member."""

    password = generate_password()
    member = await directory.create_member(payload.email, password, role=payload.role, full_name=payload.full_name)
    sent, err = await mailer.send_invitation(member.email, password, member.role)
    if not sent:
        logger.warning("Invitation mail to %s not delivered: %s", member.email, err)
    return TeamMemberCreated(member=TeamMember.model_validate(member), password=password)


@router.patch("", response_model=TeamMember)
async def update_role(
    payload: TeamRoleUpdate,
    admin: User = Depends(deps.require_admin),
    directory: UserDirectory = Depends(deps.get_user_directory),
) -> User:
    if payload.id == admin.id and payload.role != admin.role:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role.")
    return await directory.set_role(payload.id, payload.role)


@router.delete("", response_model=Success)
async def delete_member(
    payload: TeamMemberDelete,
    admin: User = Depends(deps.require_admin),
    directory: UserDirectory = Depends(deps.get_user_directory),
) -> Success:
    if payload.id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot remove your own account.")
    await directory.delete(payload.id)
    return Success()
