from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import ConfigDict, EmailStr, Field, field_validator

from intake_backend.schemas import CamelModel
from intake_backend.services.filenames import validate_filename


class IntakeSubmission(CamelModel):
    """
    Payload posted by the public multi-step project form.

    The form sends:
    - goal, deadline, isDeadlineFlexible
    - features, addOns, otherRequirements
    - budgetMin, budgetMax, budgetTier
    - contactName, contactEmail, contactPhone, preferredContact
    - additionalNotes, attachments (secure filenames from presigned uploads)
    - source, campaign
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    goal: str = Field(min_length=1, max_length=255)
    deadline: Optional[str] = None
    is_deadline_flexible: bool = False
    features: List[str] = Field(default_factory=list)
    other_requirements: Optional[str] = None
    budget_min: int = Field(default=0, ge=0)
    budget_max: int = Field(default=0, ge=0)
    budget_tier: Optional[str] = None

    contact_name: str = Field(min_length=1, max_length=255)
    contact_email: EmailStr
    contact_phone: Optional[str] = None
    preferred_contact: Optional[Literal["email", "phone", "either"]] = None

    additional_notes: Optional[str] = None
    add_ons: List[str] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    source: Optional[str] = None
    campaign: Optional[str] = None

    @field_validator("attachments")
    @classmethod
    def attachments_are_stored_names(cls, v: List[str]) -> List[str]:
        """Only server-issued secure filenames may be referenced."""
        for name in v:
            if not validate_filename(name):
                raise ValueError(f"invalid attachment filename: {name!r}")
        return v

    @field_validator("features", "add_ons")
    @classmethod
    def drop_blank_tags(cls, v: List[str]) -> List[str]:
        return [item for item in v if item]


class IntakeResponse(CamelModel):
    success: bool = True
    submission_id: str
    lead_id: str
    score: int
    message: str = "Thank you for your submission! We'll be in touch soon."
