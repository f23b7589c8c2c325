from __future__ import annotations

import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, ConfigDict, Field

from intake_backend.schemas import CamelModel


class UserSummary(CamelModel):
    id: str
    name: str
    email: str


class ChangedBy(CamelModel):
    name: str
    email: str


class StatusHistoryOut(CamelModel):
    id: int
    lead_id: str
    from_status: str = Field(validation_alias=AliasChoices("from_status", "from"), serialization_alias="from")
    to_status: str = Field(validation_alias=AliasChoices("to_status", "to"), serialization_alias="to")
    note: Optional[str] = None
    changed_by: Optional[ChangedBy] = None
    created_at: datetime.datetime


class LeadOut(CamelModel):
    id: str
    submission_id: str
    project_goal: str
    project_description: Optional[str] = None
    project_timeline: Optional[str] = None
    is_deadline_flexible: bool = False
    estimated_budget: Optional[int] = None
    budget_min: Optional[int] = None
    budget_tier: Optional[str] = None
    project_scope: List[str] = Field(default_factory=list)
    add_ons: List[str] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    contact_name: str
    contact_email: str
    contact_phone: Optional[str] = None
    preferred_contact: Optional[str] = None
    company_name: Optional[str] = None
    status: str
    lead_score: int
    notes: Optional[str] = None
    assigned_to_id: Optional[str] = None
    assigned_to: Optional[UserSummary] = None
    source: str
    campaign: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class LeadDetail(LeadOut):
    status_history: List[StatusHistoryOut] = Field(default_factory=list)


class LeadUpdate(CamelModel):
    """PATCH body for /leads/{id}. Every field is optional."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    status: Optional[str] = None
    note: Optional[str] = None
    assigned_to_id: Optional[str] = None


class LeadListMeta(CamelModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    status_counts: Dict[str, int]


class LeadListResponse(CamelModel):
    data: List[LeadDetail]
    meta: LeadListMeta


class LeadEnvelope(CamelModel):
    data: LeadDetail


def lead_detail(lead, history_limit: Optional[int] = None) -> LeadDetail:
    """Serialize an ORM lead, keeping only the newest `history_limit` history rows."""
    detail = LeadDetail.model_validate(lead)
    if history_limit is not None:
        detail.status_history = detail.status_history[:history_limit]
    return detail
