"""
Signed cookie helpers.

OTP, email-change and phone-change tokens travel in short-lived http-only
cookies signed with ``COOKIE_SECRET``.
"""

import logging
from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, Signer

from quillpost.config import Config

logger = logging.getLogger(__name__)

OTP_COOKIE = "otp"
EMAIL_COOKIE = "email"
PHONE_COOKIE = "phone"
STATE_COOKIE = "oauth_state"

COOKIE_SALT = "quillpost.cookie"


def get_signer(config: Config) -> Signer:
    return Signer(config.cookies.secret, salt=COOKIE_SALT)


def set_token_cookie(
    response: Response,
    config: Config,
    name: str,
    value: str,
    max_age: Optional[int] = None,
):
    """Sign ``value`` and set it as an http-only cookie."""
    response.set_cookie(
        key=name,
        value=get_signer(config).sign(value).decode(),
        max_age=max_age or config.cookies.max_age,
        httponly=True,
        samesite="lax",
        secure=config.is_production,
    )


def read_signed_cookie(request: Request, config: Config, name: str) -> Optional[str]:
    """
    Read and unsign a cookie.

    Returns None when the cookie is missing or its signature is invalid.
    """
    raw = request.cookies.get(name)
    if not raw:
        return None

    try:
        return get_signer(config).unsign(raw).decode()
    except BadSignature:
        logger.warning(f"Rejected tampered {name} cookie")
        return None


def clear_cookie(response: Response, name: str):
    response.delete_cookie(key=name, httponly=True, samesite="lax")
