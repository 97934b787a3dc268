"""
Scraped Document Model - raw pages and parsed legal units.

One table holds both shapes:
- raw page rows: raw_html + extracted page metadata, sequence_index NULL
- unit rows: extracted_text (citation header + body), unit metadata and
  the unit's position in source order

(canonical_url, source_hash) is unique and is the upsert key. Unit rows use
"<content_hash>-<sequence_index>" as source_hash; failure markers use
"failed".
"""
from datetime import datetime
from models.database import db


PARSE_STATUSES = ("parsed", "failed", "failed_incomplete_html", "failed_no_nodes")
FAILED_MARKER_HASH = "failed"


class ScrapedDocument(db.Model):
    """A fetched page or one parsed unit of it."""

    __tablename__ = "scraped_documents"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(
        db.String(36),
        db.ForeignKey("scraping_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    canonical_url = db.Column(db.Text, nullable=False)
    source_hash = db.Column(db.String(100), nullable=False)

    raw_html = db.Column(db.Text)
    extracted_text = db.Column(db.Text)
    # "metadata" is reserved on declarative models
    doc_metadata = db.Column("metadata", db.JSON, nullable=False, default=dict)

    sequence_index = db.Column(db.Integer)
    parse_status = db.Column(db.String(30), nullable=False, default="parsed", index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("canonical_url", "source_hash", name="uq_scraped_documents_url_hash"),
        db.Index("ix_scraped_documents_session_sequence", "session_id", "sequence_index"),
        db.CheckConstraint(
            "parse_status IN ('parsed', 'failed', 'failed_incomplete_html', 'failed_no_nodes')",
            name="scraped_documents_parse_status_check",
        ),
    )

    @property
    def is_unit(self) -> bool:
        return self.sequence_index is not None

    @property
    def is_failed(self) -> bool:
        return (self.parse_status or "").startswith("failed")

    def to_dict(self, include_html: bool = False) -> dict:
        result = {
            "id": self.id,
            "session_id": self.session_id,
            "canonical_url": self.canonical_url,
            "source_hash": self.source_hash,
            "extracted_text": self.extracted_text,
            "metadata": self.doc_metadata or {},
            "sequence_index": self.sequence_index,
            "parse_status": self.parse_status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_html:
            result["raw_html"] = self.raw_html
        return result

    def __repr__(self):
        return f"<ScrapedDocument {self.canonical_url} seq={self.sequence_index} {self.parse_status}>"
