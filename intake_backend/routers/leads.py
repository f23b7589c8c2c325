from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from intake_backend.auth import authenticated_admin, authenticated_user
from intake_backend.errors import RecordNotFound
from intake_backend.schemas.leads import LeadEnvelope, LeadUpdate, lead_detail
from intake_backend.services.auth_service import AuthUser
from intake_backend.services.lead_store import LeadStore, get_lead_store
from intake_backend.services.status_history import apply_lead_update

logger = logging.getLogger("intake_backend.routers.leads")

router = APIRouter(prefix="/leads", tags=["leads"])

RECENT_HISTORY = 5


@router.get("/{lead_id}", response_model=LeadEnvelope)
def get_lead(
    lead_id: str,
    store: LeadStore = Depends(get_lead_store),
    admin: AuthUser = Depends(authenticated_admin),
) -> LeadEnvelope:
    """Lead detail with assignee and the full status history, newest first."""
    lead = store.get_lead(lead_id)
    if lead is None:
        logger.warning("Lead not found for detail view: id=%s", lead_id)
        raise RecordNotFound("Lead not found")
    return LeadEnvelope(data=lead_detail(lead))


@router.patch("/{lead_id}", response_model=LeadEnvelope)
def update_lead(
    lead_id: str,
    payload: LeadUpdate,
    store: LeadStore = Depends(get_lead_store),
    user: AuthUser = Depends(authenticated_user),
) -> LeadEnvelope:
    lead = apply_lead_update(store, lead_id, payload, user)
    return LeadEnvelope(data=lead_detail(lead, history_limit=RECENT_HISTORY))
