import logging
from datetime import timedelta

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from intake_backend.auth import authenticated_user
from intake_backend.config import Settings, get_settings
from intake_backend.schemas.users import LoginRequest, LoginResponse, MeResponse, Principal
from intake_backend.services.auth_service import AuthUser, sign_access_token
from intake_backend.services.lead_store import LeadStore, get_lead_store
from intake_backend.services.users import authenticate

logger = logging.getLogger("intake_backend.routers.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

AUTH_COOKIE = "auth-token"


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    store: LeadStore = Depends(get_lead_store),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    user = authenticate(store, str(payload.email).lower(), payload.password)
    token = sign_access_token(
        user,
        secret=settings.jwt_secret,
        expires_in=timedelta(days=settings.jwt_expires_days),
    )
    logger.info("User %s logged in", user.id)
    return LoginResponse(token=token, user=Principal(**user.to_dict()))


@router.get("/me", response_model=MeResponse)
def me(user: AuthUser = Depends(authenticated_user)) -> MeResponse:
    return MeResponse(user=Principal(**user.to_dict()))


@router.post("/logout")
def logout(settings: Settings = Depends(get_settings)) -> JSONResponse:
    response = JSONResponse({"success": True, "message": "Logged out successfully"})
    response.set_cookie(
        AUTH_COOKIE,
        "",
        max_age=0,
        path="/",
        httponly=True,
        secure=settings.environment == "production",
        samesite="strict",
    )
    return response
