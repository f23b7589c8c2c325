from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from intake_backend.errors import InvalidStatusValue, RecordNotFound
from intake_backend.models import Lead, LeadStatus, StatusHistory
from intake_backend.schemas.leads import LeadUpdate
from intake_backend.services.auth_service import AuthUser
from intake_backend.services.lead_store import LeadStore

logger = logging.getLogger("intake_backend.services.status_history")

INITIAL_NOTE = "Initial lead submission from website"


def validate_status(value: str) -> str:
    if value not in LeadStatus.values():
        raise InvalidStatusValue("Invalid status value")
    return value


def record_initial_status(store: LeadStore, lead: Lead) -> StatusHistory:
    """
    Write the creation marker (new -> new, no actor). Runs inside the same
    transaction that stores the lead.
    """
    entry = StatusHistory(
        lead_id=lead.id,
        from_status=LeadStatus.NEW.value,
        to_status=LeadStatus.NEW.value,
        note=INITIAL_NOTE,
        changed_by_id=None,
    )
    return store.add_status_history(entry)


def _stamp_note(existing: Optional[str], note: str, actor: AuthUser, now: datetime) -> str:
    line = f"[{now.isoformat()}] {actor.name or actor.email}: {note}"
    return f"{existing}\n{line}" if existing else line


def apply_lead_update(
    store: LeadStore,
    lead_id: str,
    update: LeadUpdate,
    actor: AuthUser,
    *,
    now: Optional[datetime] = None,
) -> Lead:
    """
    Apply an admin edit to a lead.

    A status change writes one StatusHistory row and the new status in a single
    transaction. There is no transition graph: any status may follow any other.
    """
    lead = store.get_lead(lead_id)
    if lead is None:
        raise RecordNotFound("Lead not found")

    now = now or datetime.now(timezone.utc)
    new_status: Optional[str] = None
    if update.status is not None:
        validate_status(update.status)
        if update.status != lead.status:
            new_status = update.status

    assign = "assigned_to_id" in update.model_fields_set
    if assign and update.assigned_to_id and update.assigned_to_id != lead.assigned_to_id:
        if store.get_user(update.assigned_to_id) is None:
            raise RecordNotFound("Assigned user not found", status_code=400)

    with store.transaction():
        if new_status is not None:
            previous = lead.status
            store.add_status_history(
                StatusHistory(
                    lead_id=lead.id,
                    from_status=previous,
                    to_status=new_status,
                    note=update.note or None,
                    changed_by_id=actor.id,
                )
            )
            lead.status = new_status
            logger.info(
                "Lead %s status %s -> %s by %s",
                lead.id,
                previous,
                new_status,
                actor.id,
            )

        if assign:
            lead.assigned_to_id = update.assigned_to_id or None

        if update.note:
            lead.notes = _stamp_note(lead.notes, update.note, actor, now)

        lead.touch()

    return lead
