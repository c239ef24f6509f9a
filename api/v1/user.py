"""
User account endpoints.

Profile read/update and email, phone and username changes. Every route
requires a bearer access token.
"""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field

from ..cookies import EMAIL_COOKIE, PHONE_COOKIE, read_signed_cookie
from ..deps import AccountServiceDep, ProfileServiceDep, ServicesDep
from ..guard import CurrentUser, auth_guard
from .auth import CheckOtpRequest, MessageResponse, UserResponse, challenge_response

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(auth_guard)])


# Request/Response models

class ProfileData(BaseModel):
    id: int
    nickname: str
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    profile_bg_image: Optional[str] = None
    gender: Optional[str] = None
    birthday: Optional[str] = None
    linkedin_profile: Optional[str] = None


class ProfileResponse(BaseModel):
    user: UserResponse
    profile: Optional[ProfileData] = None


class UpdateProfileRequest(BaseModel):
    """Profile update; empty fields are left unchanged."""
    nickname: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=200)
    profile_image: Optional[str] = Field(None, max_length=1000)
    profile_bg_image: Optional[str] = Field(None, max_length=1000)
    gender: Optional[Literal["male", "female", "other"]] = None
    birthday: Optional[datetime] = None
    linkedin_profile: Optional[str] = Field(None, max_length=255)


class ChangeEmailRequest(BaseModel):
    email: EmailStr = Field(..., description="New email address")


class ChangePhoneRequest(BaseModel):
    phone: str = Field(..., min_length=5, max_length=32, description="New mobile number")


class VerifyCodeRequest(CheckOtpRequest):
    """Code confirming a staged email or phone change."""


class ChangeUsernameRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)


# Endpoints

@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: CurrentUser, profiles: ProfileServiceDep):
    """Get the current user and their profile."""
    user, profile = await profiles.get_profile(current_user)
    return {
        "user": user.to_dict(),
        "profile": profile.to_dict() if profile else None,
    }


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: UpdateProfileRequest,
    current_user: CurrentUser,
    profiles: ProfileServiceDep,
):
    """Update the current user's profile, creating it if needed."""
    profile = await profiles.update_profile(current_user, request.model_dump(exclude_none=True))
    return {"user": current_user.to_dict(), "profile": profile.to_dict()}


@router.patch("/change-email", response_model=MessageResponse)
async def change_email(
    request: ChangeEmailRequest,
    response: Response,
    current_user: CurrentUser,
    accounts: AccountServiceDep,
    services: ServicesDep,
):
    """Send an OTP to a new email address and set the ``email`` cookie."""
    challenge = await accounts.change_email(current_user, str(request.email))
    return challenge_response(challenge, response, services, EMAIL_COOKIE)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    request: VerifyCodeRequest,
    http_request: Request,
    current_user: CurrentUser,
    accounts: AccountServiceDep,
    services: ServicesDep,
):
    """Confirm the new email address with its OTP."""
    token = read_signed_cookie(http_request, services.config, EMAIL_COOKIE)
    message = await accounts.verify_email(current_user, token, request.code)
    return {"message": message}


@router.patch("/change-phone", response_model=MessageResponse)
async def change_phone(
    request: ChangePhoneRequest,
    response: Response,
    current_user: CurrentUser,
    accounts: AccountServiceDep,
    services: ServicesDep,
):
    """Send an OTP to a new phone number and set the ``phone`` cookie."""
    challenge = await accounts.change_phone(current_user, request.phone)
    return challenge_response(challenge, response, services, PHONE_COOKIE)


@router.post("/verify-phone", response_model=MessageResponse)
async def verify_phone(
    request: VerifyCodeRequest,
    http_request: Request,
    current_user: CurrentUser,
    accounts: AccountServiceDep,
    services: ServicesDep,
):
    """Confirm the new phone number with its OTP."""
    token = read_signed_cookie(http_request, services.config, PHONE_COOKIE)
    message = await accounts.verify_phone(current_user, token, request.code)
    return {"message": message}


@router.patch("/change-username", response_model=MessageResponse)
async def change_username(
    request: ChangeUsernameRequest,
    current_user: CurrentUser,
    accounts: AccountServiceDep,
):
    """Rename the current user."""
    message = await accounts.change_username(current_user, request.username)
    return {"message": message}
