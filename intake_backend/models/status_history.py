from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from intake_backend.db import Base
from intake_backend.models.lead import utcnow


class StatusHistory(Base):
    """Append-only audit row written for every lead status transition."""

    __tablename__ = "status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(
        String(36),
        ForeignKey("leads.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    from_status = Column(String(32), nullable=False)
    to_status = Column(String(32), nullable=False)
    note = Column(Text, nullable=True)
    # Null for the system-generated creation marker.
    changed_by_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    lead = relationship("Lead", back_populates="status_history")
    changed_by = relationship("User", back_populates="status_changes", lazy="joined")
