import logging

from fastapi import APIRouter, Depends, Request, status

from intake_backend.schemas.intake import IntakeResponse, IntakeSubmission
from intake_backend.services.intake import ClientInfo, submit_intake
from intake_backend.services.lead_store import LeadStore, get_lead_store

logger = logging.getLogger("intake_backend.routers.intake")

router = APIRouter(tags=["intake"])


def _client_info(request: Request) -> ClientInfo:
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    elif request.client:
        ip = request.client.host
    else:
        ip = "unknown"
    return ClientInfo(ip_address=ip, user_agent=request.headers.get("user-agent", ""))


@router.post(
    "/project-intake",
    response_model=IntakeResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit a project request",
    description=(
        "Public endpoint hit by the multi-step intake form. Scores the "
        "submission and stores it as a new lead."
    ),
)
def create_project_intake(
    payload: IntakeSubmission,
    request: Request,
    store: LeadStore = Depends(get_lead_store),
) -> IntakeResponse:
    logger.info(
        "Received intake from '%s' (%s) [source=%s]",
        payload.contact_name,
        payload.contact_email,
        payload.source or "website",
    )
    lead = submit_intake(store, payload, _client_info(request))
    return IntakeResponse(
        submission_id=lead.submission_id,
        lead_id=lead.id,
        score=lead.lead_score,
    )
