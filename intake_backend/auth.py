# intake_backend/auth.py

"""
Bearer-token gate for dashboard routes.

Routes declare `Depends(authenticated_user)` or `Depends(authenticated_admin)`:
- Missing or malformed `Authorization: Bearer <jwt>` header -> 401.
- Valid token but the wrong role -> 403.
The decoded principal (AuthUser) is handed to the route.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request

from intake_backend.config import Settings, get_settings
from intake_backend.errors import Forbidden, Unauthorized
from intake_backend.services.auth_service import AuthUser, decode_access_token

logger = logging.getLogger("intake_backend.auth")

BEARER_PREFIX = "Bearer "


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        raise Unauthorized("Missing or invalid Authorization header")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Missing or invalid Authorization header")
    return token


def require_user(role: Optional[str] = None) -> Callable[..., AuthUser]:
    """Build a dependency that authenticates the caller and optionally checks role."""

    def dependency(
        request: Request,
        settings: Settings = Depends(get_settings),
    ) -> AuthUser:
        user = decode_access_token(_bearer_token(request), secret=settings.jwt_secret)
        if role and user.role != role:
            logger.warning(
                "User %s (role=%s) denied on %s; requires %s",
                user.id,
                user.role,
                request.url.path,
                role,
            )
            raise Forbidden("Forbidden: insufficient permissions")
        return user

    return dependency


authenticated_user = require_user()
authenticated_admin = require_user("admin")
