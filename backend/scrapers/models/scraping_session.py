"""
Scraping Session Model - one scraping run against one root URL.

Lifecycle: running -> completed | failed. Both end states are terminal;
the orchestrator refuses further transitions.
"""
from datetime import datetime
from uuid import uuid4
from models.database import db


SESSION_STATUSES = ("running", "completed", "failed")


class ScrapingSession(db.Model):
    """Tracks a scraping session and owns the documents it produced."""

    __tablename__ = "scraping_sessions"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(
        db.String(36),
        unique=True,
        nullable=False,
        default=lambda: str(uuid4()),
        index=True,
    )

    category = db.Column(db.String(50), nullable=False, index=True)  # constitution_1987, acts
    root_url = db.Column(db.Text, nullable=False)
    operator = db.Column(db.String(100), nullable=False, default="system")

    status = db.Column(
        db.String(20),
        nullable=False,
        default="running",
        index=True,
    )
    started_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    finished_at = db.Column(db.DateTime)
    error_message = db.Column(db.Text)

    documents = db.relationship(
        "ScrapedDocument",
        backref="session",
        lazy="dynamic",
        cascade="all, delete-orphan",
        foreign_keys="ScrapedDocument.session_id",
        primaryjoin="ScrapingSession.session_id == foreign(ScrapedDocument.session_id)",
    )

    __table_args__ = (
        db.Index("ix_scraping_sessions_category_started", "category", "started_at"),
        db.CheckConstraint(
            "status IN ('running', 'completed', 'failed')",
            name="scraping_sessions_status_check",
        ),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status != "running"

    def complete(self):
        """Mark session as completed."""
        self.status = "completed"
        self.finished_at = datetime.utcnow()

    def fail(self, error):
        """Mark session as failed."""
        self.status = "failed"
        self.finished_at = datetime.utcnow()
        self.error_message = str(error)

    @property
    def duration_seconds(self) -> float:
        if not self.started_at:
            return 0
        end = self.finished_at or datetime.utcnow()
        return (end - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "category": self.category,
            "root_url": self.root_url,
            "operator": self.operator,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration_seconds,
            "error_message": self.error_message,
        }

    def __repr__(self):
        return f"<ScrapingSession {self.session_id} {self.category} status={self.status}>"
