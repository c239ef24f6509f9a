"""
Authentication endpoints.

Handles OTP login / registration and session checks.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field, field_validator

from quillpost.errors import ValidationMessage
from quillpost.services import OtpChallenge

from ..cookies import OTP_COOKIE, read_signed_cookie, set_token_cookie
from ..deps import AuthServiceDep, ServicesDep
from ..guard import CurrentUser, auth_guard, skip_auth

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(auth_guard)])


# Request/Response models

class UserExistenceRequest(BaseModel):
    """Start a login or registration."""
    method: str = Field(..., description="username, email or phone")
    type: str = Field(..., description="login or register")
    identifier: str = Field(..., min_length=3, max_length=100, description="Username, email or phone number")


class CheckOtpRequest(BaseModel):
    """OTP verification request."""
    code: str = Field(..., description="5 digit OTP code")

    @field_validator("code")
    @classmethod
    def check_code_length(cls, value: str) -> str:
        if len(value) != 5:
            raise ValueError(ValidationMessage.OTP_LENGTH.value)
        return value


class DebugInfo(BaseModel):
    """OTP code and token, returned outside production only."""
    code: str
    token: str


class MessageResponse(BaseModel):
    message: str
    debug: Optional[DebugInfo] = None


class LoginResponse(BaseModel):
    """Access token response."""
    message: str
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """User info response."""
    id: int
    username: str
    email: Optional[str] = None
    phone: Optional[str] = None
    verify_email: bool
    verify_phone: bool
    created_at: Optional[str] = None


def challenge_response(
    challenge: OtpChallenge,
    response: Response,
    services: ServicesDep,
    cookie: str,
) -> dict:
    """Put the challenge token in a signed cookie and build the body."""
    if challenge.token:
        set_token_cookie(response, services.config, cookie, challenge.token)
    return challenge.to_dict()


# Endpoints

@router.post("/user-existence", response_model=MessageResponse)
@skip_auth
async def user_existence(
    request: UserExistenceRequest,
    response: Response,
    auth: AuthServiceDep,
    services: ServicesDep,
):
    """
    Login or register with a username, email or phone.

    Sends an OTP and sets the ``otp`` cookie used by check-otp.
    """
    challenge = await auth.user_existence(request.method, request.type, request.identifier)
    return challenge_response(challenge, response, services, OTP_COOKIE)


@router.post("/check-otp", response_model=LoginResponse)
@skip_auth
async def check_otp(
    request: CheckOtpRequest,
    http_request: Request,
    auth: AuthServiceDep,
    services: ServicesDep,
):
    """
    Verify the OTP code and return an access token.
    """
    token = read_signed_cookie(http_request, services.config, OTP_COOKIE)
    result = await auth.check_otp(token, request.code)
    return result.to_dict()


@router.get("/check-login", response_model=UserResponse)
async def check_login(current_user: CurrentUser):
    """
    Get the user behind the access token.
    """
    return current_user.to_dict()
