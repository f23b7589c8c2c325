"""
Models package for the intake backend.

Imports and exposes ORM models so they are registered with Base.metadata.
"""

from intake_backend.db import Base
from .lead import Lead, LeadStatus  # noqa: F401
from .status_history import StatusHistory  # noqa: F401
from .user import User, UserRole  # noqa: F401

__all__ = [
    "Base",
    "Lead",
    "LeadStatus",
    "StatusHistory",
    "User",
    "UserRole",
]
