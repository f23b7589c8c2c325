import datetime
import uuid
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from intake_backend.db import Base


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, matching what SQLite hands back."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class LeadStatus(str, Enum):
    """
    Pipeline states for a lead. Any state may follow any other; the admin
    dashboard uses them for manual triage.
    """

    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL_SENT = "proposal_sent"
    WON = "won"
    LOST = "lost"

    @classmethod
    def values(cls) -> list:
        return [member.value for member in cls]


class Lead(Base):
    """One project request submitted through the public intake form."""

    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=new_id)
    submission_id = Column(String(64), unique=True, index=True, nullable=False)

    project_goal = Column(String(255), nullable=False)
    project_description = Column(Text, nullable=True)
    project_timeline = Column(String(64), nullable=True)
    is_deadline_flexible = Column(Boolean, nullable=False, default=False)
    estimated_budget = Column(Integer, nullable=True)
    budget_min = Column(Integer, nullable=True)
    budget_tier = Column(String(64), nullable=True)
    project_scope = Column(JSON, nullable=False, default=list)
    add_ons = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)

    contact_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), index=True, nullable=False)
    contact_phone = Column(String(64), nullable=True)
    preferred_contact = Column(String(16), nullable=True)
    company_name = Column(String(255), nullable=True)

    status = Column(String(32), index=True, nullable=False, default=LeadStatus.NEW.value)
    lead_score = Column(Integer, index=True, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    assigned_to_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=True)

    source = Column(String(64), nullable=False, default="website")
    campaign = Column(String(128), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    assigned_to = relationship("User", back_populates="assigned_leads", lazy="joined")
    status_history = relationship(
        "StatusHistory",
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="StatusHistory.id.desc()",
    )

    __table_args__ = (
        Index("ix_leads_status_score_created", "status", "lead_score", "created_at"),
    )

    def touch(self) -> None:
        """Update the `updated_at` timestamp."""
        self.updated_at = utcnow()
