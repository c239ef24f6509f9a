"""
Bearer token guard.

Attached to routers as a dependency. Endpoints decorated with ``skip_auth``
are let through without a token.
"""

import logging
from typing import Annotated, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quillpost.auth import is_jwt
from quillpost.db import User
from quillpost.errors import AuthMessage, Unauthorized

from .deps import AuthServiceDep

logger = logging.getLogger(__name__)

SKIP_AUTH_ATTR = "__skip_auth__"

# Security scheme
security = HTTPBearer(auto_error=False)


def skip_auth(endpoint: Callable) -> Callable:
    """Mark an endpoint as public."""
    setattr(endpoint, SKIP_AUTH_ATTR, True)
    return endpoint


async def auth_guard(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    auth: AuthServiceDep,
) -> Optional[User]:
    """
    Resolve the bearer token to the current user.

    Returns None for endpoints marked with ``skip_auth``.

    Raises:
        Unauthorized: Missing, malformed, invalid or expired token
    """
    endpoint = request.scope.get("endpoint")
    if getattr(endpoint, SKIP_AUTH_ATTR, False):
        return None

    if credentials is None or not is_jwt(credentials.credentials):
        logger.debug(f"Rejected request to {request.url.path}: no bearer token")
        raise Unauthorized(AuthMessage.AUTHORIZATION_FAILED)

    user = await auth.validate_access_token(credentials.credentials)
    request.state.user = user
    return user


# Reuses the guard's cached result within a request
CurrentUser = Annotated[User, Depends(auth_guard)]
