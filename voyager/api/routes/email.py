"""Generic outbound e-mail for authenticated staff."""

from fastapi import APIRouter, Depends, HTTPException, status

from voyager.api import deps
from voyager.db.models import User
from voyager.schemas.common import Success
from voyager.schemas.email import EmailSendRequest
from voyager.services.email import EmailSender

router = APIRouter(prefix="/email", tags=["email"])


@router.post("/send", response_model=Success)
async def send_email(
    payload: EmailSendRequest,
    _: User = Depends(deps.get_current_user),
    mailer: EmailSender = Depends(deps.get_email_sender),
) -> Success:
    if not payload.subject or not (payload.html or payload.text):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: to, subject, and html or text",
        )

    sent, _err = await mailer.send(str(payload.to), payload.subject, html=payload.html, text=payload.text)
    if not sent:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send email")
    return Success()
