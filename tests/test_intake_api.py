from datetime import datetime, timedelta, timezone

from intake_backend.models import Lead, StatusHistory
from intake_backend.schemas.intake import IntakeSubmission
from intake_backend.services.intake import new_submission_id, submit_intake

from .conftest import intake_payload
from .fakes import InMemoryLeadStore


def test_submission_creates_scored_lead_with_creation_marker(client, db):
    res = client.post(
        "/project-intake",
        json=intake_payload(),
        headers={"x-forwarded-for": "203.0.113.7, 10.0.0.1", "user-agent": "pytest-agent"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["score"] == 55
    assert body["submissionId"].startswith("sub_")

    lead = db.get(Lead, body["leadId"])
    assert lead.status == "new"
    assert lead.lead_score == 55
    assert lead.submission_id == body["submissionId"]
    assert lead.project_scope == ["Landing page", "Shopping cart", "Payment checkout", "User login"]
    assert lead.attachments == ["1700000000000_0123456789abcdef.png"]
    assert lead.estimated_budget == 15000
    assert lead.ip_address == "203.0.113.7"
    assert lead.user_agent == "pytest-agent"

    rows = db.query(StatusHistory).filter(StatusHistory.lead_id == lead.id).all()
    assert len(rows) == 1
    assert (rows[0].from_status, rows[0].to_status) == ("new", "new")
    assert rows[0].changed_by_id is None


def test_missing_required_fields(client):
    payload = intake_payload()
    del payload["goal"]
    del payload["contactEmail"]

    res = client.post("/project-intake", json=payload)

    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "missing_parameter"
    assert "goal" in body["error"]
    assert "contactEmail" in body["error"]


def test_invalid_email_is_rejected(client):
    res = client.post("/project-intake", json=intake_payload(contactEmail="not-an-email"))

    assert res.status_code == 400


def test_attachments_must_be_safe_stored_names(client):
    res = client.post("/project-intake", json=intake_payload(attachments=["../../etc/passwd"]))

    assert res.status_code == 400


def test_unknown_fields_are_rejected(client):
    res = client.post("/project-intake", json=intake_payload(status="won"))

    assert res.status_code == 400


def test_submit_intake_commits_lead_and_marker_together():
    store = InMemoryLeadStore()
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    payload = IntakeSubmission(
        goal="Booking app",
        deadline=(now + timedelta(days=90)).isoformat(),
        features=["Calendar"],
        add_ons=["SEO"],
        contact_name="Lee",
        contact_email="lee@example.com",
        contact_phone="555-0100",
    )

    lead = submit_intake(store, payload, now=now)

    assert store.commits == 1
    assert list(store.leads) == [lead.id]
    assert [(row.from_status, row.to_status) for row in store.history] == [("new", "new")]
    # 0 budget + 10 urgency + 4 complexity + 5 phone
    assert lead.lead_score == 19
    assert lead.source == "website"
    assert lead.ip_address == "unknown"


def test_submission_ids_are_unique():
    ids = {new_submission_id() for _ in range(100)}

    assert len(ids) == 100
    assert all(i.startswith("sub_") for i in ids)
