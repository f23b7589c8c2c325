from __future__ import annotations

import datetime
from typing import List, Literal, Optional

from pydantic import ConfigDict, EmailStr, Field

from intake_backend.schemas import CamelModel


class UserCreate(CamelModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    role: Literal["admin", "user"] = "user"


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    role: str
    created_at: datetime.datetime


class UserCounts(CamelModel):
    assigned_leads: int = 0
    status_changes: int = 0


class UserWithCounts(UserOut):
    counts: UserCounts


class UserEnvelope(CamelModel):
    data: UserOut


class UserListResponse(CamelModel):
    data: List[UserWithCounts]


class LoginRequest(CamelModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(min_length=1)


class Principal(CamelModel):
    id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None


class LoginResponse(CamelModel):
    token: str
    user: Principal


class MeResponse(CamelModel):
    user: Principal
