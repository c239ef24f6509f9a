"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from . import auth, google, user

router = APIRouter()

# Include all route modules
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(google.router, prefix="/auth/google", tags=["Authentication"])
router.include_router(user.router, prefix="/user", tags=["User"])
