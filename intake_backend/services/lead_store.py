"""
Record store for leads, their status history and dashboard users.

Handlers never touch a global session: they receive a LeadStore through the
get_lead_store dependency, which makes an in-memory fake a drop-in for tests.
"""

from __future__ import annotations

import abc
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from intake_backend.db import get_db
from intake_backend.models import Lead, StatusHistory, User

logger = logging.getLogger("intake_backend.services.lead_store")


@dataclass
class LeadFilters:
    page: int = 1
    page_size: int = 20
    status: Optional[str] = None
    search: Optional[str] = None
    assigned_to: Optional[str] = None

    @property
    def offset(self) -> int:
        return (max(1, self.page) - 1) * self.page_size


class LeadStore(abc.ABC):
    """Persistence operations the intake and admin flows depend on."""

    @abc.abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit everything written inside the block, or none of it."""

    @abc.abstractmethod
    def add_lead(self, lead: Lead) -> Lead: ...

    @abc.abstractmethod
    def get_lead(self, lead_id: str) -> Optional[Lead]: ...

    @abc.abstractmethod
    def list_leads(self, filters: LeadFilters) -> Tuple[List[Lead], int]: ...

    @abc.abstractmethod
    def status_counts(self) -> Dict[str, int]: ...

    @abc.abstractmethod
    def add_status_history(self, entry: StatusHistory) -> StatusHistory: ...

    @abc.abstractmethod
    def history_for(self, lead_id: str, limit: Optional[int] = None) -> List[StatusHistory]: ...

    @abc.abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abc.abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abc.abstractmethod
    def add_user(self, user: User) -> User: ...

    @abc.abstractmethod
    def list_users(self) -> List[Tuple[User, int, int]]:
        """Users with (assigned lead count, status change count), newest first."""


class SqlAlchemyLeadStore(LeadStore):
    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except Exception:
            logger.exception("Transaction failed; rolling back.")
            self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Leads
    # ------------------------------------------------------------------
    def add_lead(self, lead: Lead) -> Lead:
        self.session.add(lead)
        self.session.flush()  # ensure id is populated before returning
        logger.debug("Staged lead id=%s submission=%s", lead.id, lead.submission_id)
        return lead

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        return self.session.get(Lead, lead_id)

    def _apply_filters(self, query, filters: LeadFilters):
        if filters.status and filters.status != "all":
            query = query.where(Lead.status == filters.status)

        if filters.search:
            like = f"%{filters.search}%"
            query = query.where(
                or_(
                    Lead.contact_name.ilike(like),
                    Lead.contact_email.ilike(like),
                    Lead.contact_phone.ilike(like),
                    Lead.project_goal.ilike(like),
                )
            )

        if filters.assigned_to and filters.assigned_to != "all":
            query = query.where(Lead.assigned_to_id == filters.assigned_to)
        return query

    def list_leads(self, filters: LeadFilters) -> Tuple[List[Lead], int]:
        """
        Return one page of leads plus the total matching count.

        Ordered by status, then score (high first), then most recent.
        """
        try:
            query = self._apply_filters(
                select(Lead).options(selectinload(Lead.status_history)),
                filters,
            )
            query = (
                query.order_by(Lead.status.asc(), Lead.lead_score.desc(), Lead.created_at.desc())
                .offset(filters.offset)
                .limit(filters.page_size)
            )
            leads: List[Lead] = list(self.session.execute(query).unique().scalars().all())

            count_query = self._apply_filters(select(func.count(Lead.id)), filters)
            total = int(self.session.execute(count_query).scalar_one())

            logger.debug(
                "Fetched %d/%d leads (status=%s, search=%s, assigned_to=%s, page=%d)",
                len(leads),
                total,
                filters.status,
                filters.search,
                filters.assigned_to,
                filters.page,
            )
            return leads, total

        except Exception:
            logger.exception("Error while fetching leads (filters=%r)", filters)
            raise

    def status_counts(self) -> Dict[str, int]:
        rows = self.session.execute(
            select(Lead.status, func.count(Lead.id)).group_by(Lead.status)
        ).all()
        return {status: int(count) for status, count in rows}

    # ------------------------------------------------------------------
    # Status history
    # ------------------------------------------------------------------
    def add_status_history(self, entry: StatusHistory) -> StatusHistory:
        self.session.add(entry)
        self.session.flush()
        return entry

    def history_for(self, lead_id: str, limit: Optional[int] = None) -> List[StatusHistory]:
        query = (
            select(StatusHistory)
            .where(StatusHistory.lead_id == lead_id)
            .order_by(StatusHistory.created_at.desc(), StatusHistory.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.execute(query).unique().scalars().all())

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.session.execute(
            select(User).where(User.email == email.lower())
        ).scalar_one_or_none()

    def add_user(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    def list_users(self) -> List[Tuple[User, int, int]]:
        assigned = (
            select(Lead.assigned_to_id.label("user_id"), func.count(Lead.id).label("n"))
            .group_by(Lead.assigned_to_id)
            .subquery()
        )
        changes = (
            select(StatusHistory.changed_by_id.label("user_id"), func.count(StatusHistory.id).label("n"))
            .group_by(StatusHistory.changed_by_id)
            .subquery()
        )
        rows = self.session.execute(
            select(User, func.coalesce(assigned.c.n, 0), func.coalesce(changes.c.n, 0))
            .outerjoin(assigned, assigned.c.user_id == User.id)
            .outerjoin(changes, changes.c.user_id == User.id)
            .order_by(User.created_at.desc())
        ).all()
        return [(user, int(n_assigned), int(n_changes)) for user, n_assigned, n_changes in rows]


def get_lead_store(db: Session = Depends(get_db)) -> LeadStore:
    """FastAPI dependency wiring a request-scoped session into a store."""
    return SqlAlchemyLeadStore(db)
