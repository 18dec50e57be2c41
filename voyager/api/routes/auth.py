"""HTTP route handlers for login, profile and the password reset flow."""

from fastapi import APIRouter, Depends

from voyager.api import deps
from voyager.db.models import User
from voyager.schemas.auth import (
    PasswordChange,
    ProfileUpdate,
    ResetPasswordRequest,
    SendOtpRequest,
    SendOtpResponse,
    Token,
    UserLogin,
    UserResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from voyager.schemas.common import Success
from voyager.services.auth import AuthService
from voyager.services.directory import UserDirectory

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=Token)
async def login(
    payload: UserLogin,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> Token:
    """Authenticate a staff member and return a bearer access token."""

    token = await auth_service.login(payload)
    return Token(access_token=token, token_type="bearer")


@router.get("/me", response_model=UserResponse)
async def read_me(user: User = Depends(deps.get_current_user)) -> User:
    return user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    payload: ProfileUpdate,
    user: User = Depends(deps.get_current_user),
    directory: UserDirectory = Depends(deps.get_user_directory),
) -> User:
    return await directory.update_profile(user, payload.full_name)


@router.post("/change-password", response_model=Success)
async def change_password(
    payload: PasswordChange,
    user: User = Depends(deps.get_current_user),
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> Success:
    """Change the caller's password after re-checking the current one."""

    await auth_service.change_password(user, payload)
    return Success()


@router.post("/send-otp", response_model=SendOtpResponse)
async def send_otp(
    payload: SendOtpRequest,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> SendOtpResponse:
    """Mail a reset code and return the signed token the client must send back with it."""

    otp_token = await auth_service.send_reset_code(payload.email)
    return SendOtpResponse(otp_token=otp_token)


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(
    payload: VerifyOtpRequest,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> VerifyOtpResponse:
    """Exchange the OTP token and the mailed code for a short-lived reset token."""

    reset_token = auth_service.verify_reset_code(payload.otp_token, payload.code)
    return VerifyOtpResponse(reset_token=reset_token)


@router.post("/reset-password", response_model=Success)
async def reset_password(
    payload: ResetPasswordRequest,
    auth_service: AuthService = Depends(deps.get_auth_service),
) -> Success:
    await auth_service.reset_password(payload.reset_token, payload.new_password)
    return Success()
