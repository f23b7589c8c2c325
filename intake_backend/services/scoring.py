from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Optional, Sequence, Union

BUDGET_CAP = 40
BUDGET_SATURATION = 50000
URGENCY_POINTS = ((30, 20), (60, 15))
URGENCY_DEFAULT = 10
COMPLEXITY_CAP = 25
COMPLEXITY_PER_ITEM = 2
COMPLETENESS_CAP = 15
COMPLETENESS_POINTS = {"notes": 5, "attachments": 10, "phone": 5}

MAX_SCORE = BUDGET_CAP + URGENCY_POINTS[0][1] + COMPLEXITY_CAP + COMPLETENESS_CAP

DeadlineLike = Union[datetime, date, str, None]


@dataclass
class ScoringInput:
    budget_max: float = 0
    deadline: DeadlineLike = None
    features: Sequence[str] = field(default_factory=list)
    add_ons: Sequence[str] = field(default_factory=list)
    notes: Optional[str] = None
    attachments: Sequence[str] = field(default_factory=list)
    phone: Optional[str] = None


def parse_deadline(value: DeadlineLike) -> Optional[datetime]:
    """Coerce a deadline into an aware UTC datetime; None when unusable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def days_until(deadline: datetime, now: datetime) -> int:
    return math.ceil((deadline - now).total_seconds() / 86400)


def budget_points(budget_max: float) -> float:
    return min(max(budget_max or 0, 0) / BUDGET_SATURATION * BUDGET_CAP, BUDGET_CAP)


def urgency_points(deadline: DeadlineLike, now: datetime) -> int:
    parsed = parse_deadline(deadline)
    if parsed is None:
        return URGENCY_DEFAULT
    # A deadline already in the past still counts as most urgent.
    days = days_until(parsed, now)
    for limit, points in URGENCY_POINTS:
        if days <= limit:
            return points
    return URGENCY_DEFAULT


def complexity_points(features: Sequence[str], add_ons: Sequence[str]) -> int:
    count = len(features or []) + len(add_ons or [])
    return min(count * COMPLEXITY_PER_ITEM, COMPLEXITY_CAP)


def completeness_points(notes: Optional[str], attachments: Sequence[str], phone: Optional[str]) -> int:
    points = 0
    if notes and notes.strip():
        points += COMPLETENESS_POINTS["notes"]
    if attachments:
        points += COMPLETENESS_POINTS["attachments"]
    if phone and phone.strip():
        points += COMPLETENESS_POINTS["phone"]
    return min(points, COMPLETENESS_CAP)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_lead(lead: ScoringInput, *, now: Optional[datetime] = None) -> int:
    """
    Score a submission from 0 to 100.

    budget (<=40) + urgency (10/15/20) + complexity (<=25) + completeness (<=15),
    rounded half-up. Each part is capped on its own, so the sum never passes 100.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    total = (
        budget_points(lead.budget_max)
        + urgency_points(lead.deadline, now)
        + complexity_points(lead.features, lead.add_ons)
        + completeness_points(lead.notes, lead.attachments, lead.phone)
    )
    return _round_half_up(total)
