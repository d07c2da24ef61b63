# Overview: Service-layer operations for uploaded documents and their verification.

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Document, Lead, Booking, Plot, Project
from ..constants import EntityType, DocType, DocStatus
from ..errors import InvalidStateTransitionError, NotFoundError
from ..permissions import BOOK_PLOT, VERIFY_DOCS
from ..validation import ValidationError
from . import permission_service
from plots_erp.time_utils import utcnow


ENTITY_MODELS = {
    EntityType.LEAD: Lead,
    EntityType.BOOKING: Booking,
    EntityType.PLOT: Plot,
    EntityType.PROJECT: Project,
}

VERIFICATION_OUTCOMES = frozenset({DocStatus.VERIFIED, DocStatus.REJECTED})


def upload_document(
    user,
    entity_type: str,
    entity_id: int,
    doc_type: str,
    url: str,
    *,
    now: datetime | None = None,
) -> Document:
    permission_service.require_capability(user, BOOK_PLOT)
    if entity_type not in ENTITY_MODELS:
        raise ValidationError(f"entity_type must be one of: {', '.join(sorted(ENTITY_MODELS))}")
    if doc_type not in DocType.ALL:
        raise ValidationError(f"doc_type must be one of: {', '.join(sorted(DocType.ALL))}")
    url = (url or "").strip()
    if not url:
        raise ValidationError("url is required")

    if db.session.get(ENTITY_MODELS[entity_type], entity_id) is None:
        raise NotFoundError(
            f"{entity_type} {entity_id} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )

    doc = Document(
        entity_type=entity_type,
        entity_id=entity_id,
        doc_type=doc_type,
        url=url,
        uploaded_by=user.id,
        status=DocStatus.PENDING,
        created_at=now or utcnow(),
    )
    db.session.add(doc)
    db.session.commit()
    return doc


def verify_document(
    user,
    doc_id: int,
    status: str,
    remarks: str = "",
    *,
    now: datetime | None = None,
) -> Document:
    """pending -> verified | rejected. Verified and rejected are final."""
    permission_service.require_capability(user, VERIFY_DOCS)
    if status not in VERIFICATION_OUTCOMES:
        raise ValidationError("status must be 'verified' or 'rejected'")

    doc = db.session.get(Document, doc_id)
    if doc is None:
        raise NotFoundError(f"Document {doc_id} not found", details={"doc_id": doc_id})
    if doc.status != DocStatus.PENDING:
        raise InvalidStateTransitionError(
            f"Document {doc.id} is already {doc.status}",
            details={"doc_id": doc.id, "status": doc.status},
        )

    doc.status = status
    doc.remarks = (remarks or "").strip()
    doc.verified_by = user.id
    doc.verified_at = now or utcnow()
    db.session.commit()
    current_app.logger.info("Document %s %s by user_id=%s", doc.id, status, user.id)
    return doc


def list_documents(entity_type: str, entity_id: int) -> list[Document]:
    return (
        db.session.query(Document)
        .filter(Document.entity_type == entity_type, Document.entity_id == entity_id)
        .order_by(Document.id.asc())
        .all()
    )
