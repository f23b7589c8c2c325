from __future__ import annotations

import itertools
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from intake_backend.models import Lead, StatusHistory, User
from intake_backend.models.lead import new_id, utcnow
from intake_backend.services.lead_store import LeadFilters, LeadStore


class InMemoryLeadStore(LeadStore):
    """
    Dict-backed LeadStore for service-level tests.

    transaction() snapshots what it holds and restores it if the block raises,
    so atomicity checks behave like the SQL store.
    """

    def __init__(self) -> None:
        self.leads: Dict[str, Lead] = {}
        self.history: List[StatusHistory] = []
        self.users: Dict[str, User] = {}
        self.commits = 0
        self._history_ids = itertools.count(1)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        leads = dict(self.leads)
        history = list(self.history)
        users = dict(self.users)
        lead_states = {key: (lead.status, lead.assigned_to_id, lead.notes) for key, lead in leads.items()}
        try:
            yield
        except Exception:
            self.leads, self.history, self.users = leads, history, users
            for key, (status, assigned, notes) in lead_states.items():
                lead = self.leads[key]
                lead.status, lead.assigned_to_id, lead.notes = status, assigned, notes
            raise
        self.commits += 1

    def add_lead(self, lead: Lead) -> Lead:
        lead.id = lead.id or new_id()
        lead.status = lead.status or "new"
        lead.created_at = lead.created_at or utcnow()
        lead.updated_at = lead.updated_at or lead.created_at
        self.leads[lead.id] = lead
        return lead

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        return self.leads.get(lead_id)

    def list_leads(self, filters: LeadFilters) -> Tuple[List[Lead], int]:
        items = list(self.leads.values())
        if filters.status and filters.status != "all":
            items = [lead for lead in items if lead.status == filters.status]
        if filters.assigned_to and filters.assigned_to != "all":
            items = [lead for lead in items if lead.assigned_to_id == filters.assigned_to]
        if filters.search:
            needle = filters.search.lower()
            items = [
                lead
                for lead in items
                if any(
                    needle in (value or "").lower()
                    for value in (lead.contact_name, lead.contact_email, lead.contact_phone, lead.project_goal)
                )
            ]
        items.sort(key=lambda lead: (-lead.lead_score, -lead.created_at.timestamp()))
        items.sort(key=lambda lead: lead.status)
        return items[filters.offset : filters.offset + filters.page_size], len(items)

    def status_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for lead in self.leads.values():
            counts[lead.status] = counts.get(lead.status, 0) + 1
        return counts

    def add_status_history(self, entry: StatusHistory) -> StatusHistory:
        entry.id = next(self._history_ids)
        entry.created_at = entry.created_at or utcnow()
        self.history.append(entry)
        return entry

    def history_for(self, lead_id: str, limit: Optional[int] = None) -> List[StatusHistory]:
        rows = sorted(
            (row for row in self.history if row.lead_id == lead_id),
            key=lambda row: row.id,
            reverse=True,
        )
        return rows if limit is None else rows[:limit]

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((user for user in self.users.values() if user.email == email), None)

    def add_user(self, user: User) -> User:
        user.id = user.id or new_id()
        user.created_at = user.created_at or utcnow()
        self.users[user.id] = user
        return user

    def list_users(self) -> List[Tuple[User, int, int]]:
        rows = []
        for user in sorted(self.users.values(), key=lambda u: u.created_at, reverse=True):
            assigned = sum(1 for lead in self.leads.values() if lead.assigned_to_id == user.id)
            changes = sum(1 for row in self.history if row.changed_by_id == user.id)
            rows.append((user, assigned, changes))
        return rows
