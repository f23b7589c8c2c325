# intake_backend/services/intake.py
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from intake_backend.models import Lead, LeadStatus
from intake_backend.schemas.intake import IntakeSubmission
from intake_backend.services.lead_store import LeadStore
from intake_backend.services.scoring import ScoringInput, score_lead
from intake_backend.services.status_history import record_initial_status

logger = logging.getLogger("intake_backend.services.intake")


@dataclass(frozen=True)
class ClientInfo:
    ip_address: str = "unknown"
    user_agent: str = ""


def new_submission_id() -> str:
    return f"sub_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def scoring_input_for(payload: IntakeSubmission) -> ScoringInput:
    return ScoringInput(
        budget_max=payload.budget_max,
        deadline=payload.deadline,
        features=payload.features,
        add_ons=payload.add_ons,
        notes=payload.additional_notes,
        attachments=payload.attachments,
        phone=payload.contact_phone,
    )


def submit_intake(
    store: LeadStore,
    payload: IntakeSubmission,
    client: Optional[ClientInfo] = None,
    *,
    now: Optional[datetime] = None,
) -> Lead:
    """
    Score and persist one intake submission.

    The lead and its `new -> new` creation marker are committed together.
    """
    client = client or ClientInfo()
    score = score_lead(scoring_input_for(payload), now=now)

    lead = Lead(
        submission_id=new_submission_id(),
        project_goal=payload.goal,
        project_description=payload.other_requirements or None,
        project_timeline=payload.deadline,
        is_deadline_flexible=payload.is_deadline_flexible,
        estimated_budget=payload.budget_max or None,
        budget_min=payload.budget_min or None,
        budget_tier=payload.budget_tier,
        project_scope=list(payload.features),
        add_ons=list(payload.add_ons),
        attachments=list(payload.attachments),
        contact_name=payload.contact_name,
        contact_email=str(payload.contact_email),
        contact_phone=payload.contact_phone or None,
        preferred_contact=payload.preferred_contact,
        notes=payload.additional_notes or None,
        lead_score=score,
        status=LeadStatus.NEW.value,
        source=payload.source or "website",
        campaign=payload.campaign,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )

    with store.transaction():
        store.add_lead(lead)
        record_initial_status(store, lead)

    logger.info(
        "Stored intake submission (lead=%s, submission=%s, score=%s, source=%s)",
        lead.id,
        lead.submission_id,
        score,
        lead.source,
    )
    return lead
