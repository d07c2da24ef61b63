# Overview: Service-layer operations for leads and their activities (sales pipeline).

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Lead, Activity, User
from ..constants import LeadSource, LeadStatus, Facing, ActivityType, ActivityOutcome
from ..errors import InvalidStateTransitionError, NotFoundError
from ..permissions import BOOK_PLOT
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from . import permission_service
from plots_erp.time_utils import utcnow


LEAD_POLICY = ModelValidationPolicy(
    writable_fields={
        "source", "first_name", "last_name", "phone", "email", "city",
        "project_interest_ids", "budget_min_cents", "budget_max_cents",
        "plot_size_pref", "facing_pref", "lead_score", "assigned_to_user_id",
        "next_followup_at", "tags", "consent_whatsapp",
    },
    required_on_create={"first_name", "phone"},
    choices={
        "source": set(LeadSource.ALL),
        "facing_pref": set(Facing.ALL),
    },
)


def create_lead(user, **fields) -> Lead:
    """
    Register a new lead. Unassigned leads created by a frontline user are
    assigned to that user.
    """
    permission_service.require_capability(user, BOOK_PLOT)
    patch = validate_payload(model=Lead, payload=fields, policy=LEAD_POLICY, partial=False)

    low, high = patch.get("budget_min_cents"), patch.get("budget_max_cents")
    if low is not None and high is not None and low > high:
        raise ValidationError("budget_min_cents cannot exceed budget_max_cents")
    if "lead_score" in patch and not 0 <= patch["lead_score"] <= 100:
        raise ValidationError("lead_score must be between 0 and 100")

    assignee_id = patch.get("assigned_to_user_id")
    if assignee_id is not None and db.session.get(User, assignee_id) is None:
        raise NotFoundError(f"User {assignee_id} not found", details={"user_id": assignee_id})
    if assignee_id is None:
        patch["assigned_to_user_id"] = user.id

    lead = Lead(status=LeadStatus.NEW, **patch)
    db.session.add(lead)
    db.session.commit()
    current_app.logger.info("Lead %s created by user_id=%s", lead.id, user.id)
    return lead


def get_lead(lead_id: int) -> Lead:
    lead = db.session.get(Lead, lead_id)
    if lead is None:
        raise NotFoundError(f"Lead {lead_id} not found", details={"lead_id": lead_id})
    return lead


def list_leads(status: str | None = None, assigned_to_user_id: int | None = None) -> list[Lead]:
    q = db.session.query(Lead)
    if status:
        q = q.filter(Lead.status == status)
    if assigned_to_user_id is not None:
        q = q.filter(Lead.assigned_to_user_id == assigned_to_user_id)
    return q.order_by(Lead.id.desc()).all()


def can_transition_lead(from_status: str, to_status: str) -> bool:
    """
    Funnel moves forward only (new -> working -> qualified -> hot -> won),
    skipping stages is allowed, and any open stage may drop to lost.
    """
    if from_status in LeadStatus.TERMINAL:
        return False
    if to_status == LeadStatus.LOST:
        return True
    funnel = LeadStatus.FUNNEL
    if from_status not in funnel or to_status not in funnel:
        return False
    return funnel.index(to_status) > funnel.index(from_status)


def update_lead_status(
    user,
    lead_id: int,
    status: str,
    reason_lost: str | None = None,
) -> Lead:
    permission_service.require_capability(user, BOOK_PLOT)
    if status not in LeadStatus.ALL:
        raise ValidationError(f"status must be one of: {', '.join(sorted(LeadStatus.ALL))}")

    lead = get_lead(lead_id)
    if not can_transition_lead(lead.status, status):
        raise InvalidStateTransitionError(
            f"Cannot move lead {lead.id} from '{lead.status}' to '{status}'",
            details={"lead_id": lead.id, "from": lead.status, "to": status},
        )

    if status == LeadStatus.LOST:
        reason_lost = (reason_lost or "").strip()
        if not reason_lost:
            raise ValidationError("reason_lost is required when marking a lead lost")
        lead.reason_lost = reason_lost

    from_status = lead.status
    lead.status = status
    db.session.commit()
    current_app.logger.info(
        "Lead %s moved %s -> %s by user_id=%s", lead.id, from_status, status, user.id,
    )
    return lead


def log_activity(
    user,
    lead_id: int,
    type: str,
    summary: str,
    outcome: str,
    next_action_at: datetime | None = None,
    now: datetime | None = None,
) -> Activity:
    """Append an activity and roll the lead's contact/follow-up dates forward."""
    permission_service.require_capability(user, BOOK_PLOT)
    if type not in ActivityType.ALL:
        raise ValidationError(f"type must be one of: {', '.join(sorted(ActivityType.ALL))}")
    if outcome not in ActivityOutcome.ALL:
        raise ValidationError(f"outcome must be one of: {', '.join(sorted(ActivityOutcome.ALL))}")
    now = now or utcnow()
    if next_action_at is not None and next_action_at < now:
        raise ValidationError("next_action_at cannot be in the past")

    lead = get_lead(lead_id)

    activity = Activity(
        lead_id=lead.id,
        user_id=user.id,
        type=type,
        summary=(summary or "").strip(),
        outcome=outcome,
        next_action_at=next_action_at,
        created_at=now,
    )
    db.session.add(activity)

    lead.last_contact_at = now
    if next_action_at is not None:
        lead.next_followup_at = next_action_at

    db.session.commit()
    return activity


def list_activities_for_lead(lead_id: int) -> list[Activity]:
    lead = get_lead(lead_id)
    return (
        db.session.query(Activity)
        .filter(Activity.lead_id == lead.id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .all()
    )
