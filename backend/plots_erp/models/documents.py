from __future__ import annotations

from ..extensions import db
from ..constants import DocStatus
from plots_erp.time_utils import to_utc_z


class Document(db.Model):
    """
    Uploaded paperwork (KYC, agreement, registry, layout) attached to a
    lead, booking, plot or project. The link is polymorphic: entity_type +
    entity_id, so no foreign key is declared.
    """
    __tablename__ = "documents"
    __table_args__ = (
        db.Index("ix_documents_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(16), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    doc_type = db.Column(db.String(16), nullable=False)
    url = db.Column(db.String(512), nullable=False)

    uploaded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    verified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verified_at = db.Column(db.DateTime(timezone=True), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=DocStatus.PENDING, index=True)
    remarks = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "doc_type": self.doc_type,
            "url": self.url,
            "uploaded_by": self.uploaded_by,
            "verified_by": self.verified_by,
            "verified_at": to_utc_z(self.verified_at),
            "status": self.status,
            "remarks": self.remarks,
            "created_at": to_utc_z(self.created_at),
        }
