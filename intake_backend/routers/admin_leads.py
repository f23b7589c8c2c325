from __future__ import annotations

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query

from intake_backend.auth import authenticated_admin
from intake_backend.schemas.leads import LeadListMeta, LeadListResponse, lead_detail
from intake_backend.services.auth_service import AuthUser
from intake_backend.services.lead_store import LeadFilters, LeadStore, get_lead_store

logger = logging.getLogger("intake_backend.routers.admin_leads")

router = APIRouter(prefix="/admin", tags=["admin-leads"])

MAX_PAGE_SIZE = 100


@router.get("/leads", response_model=LeadListResponse)
def admin_leads_board(
    page: int = Query(default=1),
    page_size: int = Query(default=20, alias="pageSize"),
    status: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    assigned_to: Optional[str] = Query(default=None, alias="assignedTo"),
    store: LeadStore = Depends(get_lead_store),
    admin: AuthUser = Depends(authenticated_admin),
) -> LeadListResponse:
    """
    Admin leads board data.

    Returns:
    - One page of leads (status, then score high-to-low, then newest)
    - Each lead's most recent status change
    - Totals and a per-status breakdown
    """
    page = max(1, page)
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))
    filters = LeadFilters(
        page=page,
        page_size=page_size,
        status=status,
        search=search,
        assigned_to=assigned_to,
    )

    leads, total = store.list_leads(filters)
    status_counts = store.status_counts()

    logger.info(
        "Admin %s listed %s/%s leads (page=%s, status=%s)",
        admin.id,
        len(leads),
        total,
        page,
        status,
    )

    return LeadListResponse(
        data=[lead_detail(lead, history_limit=1) for lead in leads],
        meta=LeadListMeta(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
            status_counts=status_counts,
        ),
    )
