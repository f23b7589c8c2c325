from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from jwt.exceptions import InvalidTokenError

from intake_backend.errors import Unauthorized

logger = logging.getLogger("intake_backend.services.auth")

JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 12


@dataclass(frozen=True)
class AuthUser:
    """Principal decoded from a bearer token."""

    id: str
    role: str
    email: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def sign_access_token(
    user: AuthUser,
    *,
    secret: str,
    expires_in: timedelta = timedelta(days=7),
    now: Optional[datetime] = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": user.id,
        "role": user.role,
        "iat": issued,
        "exp": issued + expires_in,
    }
    if user.email:
        claims["email"] = user.email
    if user.name:
        claims["name"] = user.name
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, *, secret: str) -> AuthUser:
    try:
        claims = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise Unauthorized("Invalid or expired token") from exc

    sub = claims.get("sub")
    role = claims.get("role")
    if not sub or not role:
        raise Unauthorized("Invalid or expired token")
    return AuthUser(
        id=str(sub),
        role=str(role),
        email=claims.get("email"),
        name=claims.get("name"),
    )
