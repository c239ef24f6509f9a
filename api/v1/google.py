"""
Google sign-in endpoints.

``GET /auth/google`` redirects to the consent screen; Google sends the user
back to ``/auth/google/redirect`` with an authorization code.
"""

import hmac
import logging
import secrets

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from quillpost.errors import AuthMessage, InternalServerError, Unauthorized

from ..cookies import STATE_COOKIE, clear_cookie, read_signed_cookie, set_token_cookie
from ..deps import AuthServiceDep, ServicesDep
from .auth import LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter()

STATE_MAX_AGE = 600


@router.get("")
async def google_login(services: ServicesDep):
    """Redirect to Google's consent screen."""
    google = services.context.google
    if not google.is_configured():
        raise InternalServerError("GOOGLE: OAuth client not configured")

    state = secrets.token_urlsafe(24)
    response = RedirectResponse(url=google.authorization_url(state), status_code=307)
    set_token_cookie(response, services.config, STATE_COOKIE, state, max_age=STATE_MAX_AGE)
    return response


@router.get("/redirect", response_model=LoginResponse)
async def google_redirect(
    request: Request,
    code: str,
    state: str,
    auth: AuthServiceDep,
    services: ServicesDep,
):
    """
    Finish Google sign-in.

    Creates the account on first sign-in and returns an access token.
    """
    expected = read_signed_cookie(request, services.config, STATE_COOKIE)
    if not expected or not hmac.compare_digest(expected, state):
        logger.warning("Google redirect with mismatched state")
        raise Unauthorized(AuthMessage.AUTHORIZATION_FAILED)

    profile = await services.context.google.fetch_profile(code)
    result = await auth.google_auth(profile)

    response = JSONResponse(content=result.to_dict())
    clear_cookie(response, STATE_COOKIE)
    return response
