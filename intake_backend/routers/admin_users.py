import logging

from fastapi import APIRouter, Depends, status

from intake_backend.auth import authenticated_admin
from intake_backend.schemas.users import (
    UserCounts,
    UserCreate,
    UserEnvelope,
    UserListResponse,
    UserOut,
    UserWithCounts,
)
from intake_backend.services.auth_service import AuthUser
from intake_backend.services.lead_store import LeadStore, get_lead_store
from intake_backend.services.users import create_user

logger = logging.getLogger("intake_backend.routers.admin_users")

router = APIRouter(prefix="/admin/users", tags=["admin-users"])


@router.get("", response_model=UserListResponse)
def list_users(
    store: LeadStore = Depends(get_lead_store),
    admin: AuthUser = Depends(authenticated_admin),
) -> UserListResponse:
    rows = store.list_users()
    return UserListResponse(
        data=[
            UserWithCounts(
                **UserOut.model_validate(user).model_dump(),
                counts=UserCounts(assigned_leads=assigned, status_changes=changes),
            )
            for user, assigned, changes in rows
        ]
    )


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def add_user(
    payload: UserCreate,
    store: LeadStore = Depends(get_lead_store),
    admin: AuthUser = Depends(authenticated_admin),
) -> UserEnvelope:
    user = create_user(store, payload)
    logger.info("Admin %s created user %s", admin.id, user.id)
    return UserEnvelope(data=UserOut.model_validate(user))
