from __future__ import annotations

import logging
from typing import Optional

from intake_backend.errors import DuplicateRecord, Unauthorized
from intake_backend.models import User
from intake_backend.schemas.users import UserCreate
from intake_backend.services.auth_service import AuthUser, hash_password, verify_password
from intake_backend.services.lead_store import LeadStore

logger = logging.getLogger("intake_backend.services.users")


def create_user(store: LeadStore, payload: UserCreate) -> User:
    email = str(payload.email).lower()
    if store.get_user_by_email(email) is not None:
        raise DuplicateRecord("User with this email already exists")

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    with store.transaction():
        store.add_user(user)

    logger.info("Created user id=%s role=%s", user.id, user.role)
    return user


def authenticate(store: LeadStore, email: str, password: str) -> AuthUser:
    """Check credentials; the same error covers unknown email and bad password."""
    user: Optional[User] = store.get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise Unauthorized("Invalid email or password")
    return AuthUser(id=user.id, role=user.role, email=user.email, name=user.name)
