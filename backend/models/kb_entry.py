"""
Knowledge-base entry generated from one parsed ScrapedDocument.

Entries are created as drafts (published_at NULL) and become visible once
released through /api/scraping/release-entries.
"""
from datetime import datetime
from models.database import db


class KBEntry(db.Model):
    __tablename__ = 'kb_entries'

    id = db.Column(db.Integer, primary_key=True)
    entry_id = db.Column(db.String(120), unique=True, nullable=False, index=True)  # CONST-1987-ART3-SEC1

    type = db.Column(db.String(50), nullable=False, index=True)  # constitution_provision, statute_section
    entry_subtype = db.Column(db.String(50))  # preamble, article, section, ordinance, act
    title = db.Column(db.Text, nullable=False)
    canonical_citation = db.Column(db.Text, nullable=False)
    text = db.Column(db.Text, nullable=False)

    # Enrichment
    summary = db.Column(db.Text)
    tags = db.Column(db.JSON, default=list)
    topics = db.Column(db.JSON, default=list)
    enrichment = db.Column(db.JSON, default=dict)
    embedding = db.Column(db.JSON)

    # Source tracking
    source_document_id = db.Column(db.Integer, db.ForeignKey('scraped_documents.id', ondelete='SET NULL'))
    session_id = db.Column(db.String(36), index=True)
    provenance = db.Column(db.JSON, default=dict)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    published_at = db.Column(db.DateTime, index=True)

    @property
    def is_draft(self):
        return self.published_at is None

    def publish(self):
        now = datetime.utcnow()
        self.published_at = now
        self.updated_at = now

    def to_dict(self, include_embedding=False):
        result = {
            'entry_id': self.entry_id,
            'type': self.type,
            'entry_subtype': self.entry_subtype,
            'title': self.title,
            'canonical_citation': self.canonical_citation,
            'text': self.text,
            'summary': self.summary,
            'tags': self.tags or [],
            'topics': self.topics or [],
            'enrichment': self.enrichment or {},
            'source_document_id': self.source_document_id,
            'session_id': self.session_id,
            'provenance': self.provenance or {},
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'published_at': self.published_at.isoformat() if self.published_at else None,
        }
        if include_embedding:
            result['embedding'] = self.embedding
        return result

    def to_summary_dict(self):
        """Compact shape used by the draft-entries listing."""
        return {
            'entry_id': self.entry_id,
            'title': self.title,
            'type': self.type,
            'entry_subtype': self.entry_subtype,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'provenance': self.provenance or {},
        }

    def __repr__(self):
        return f"<KBEntry {self.entry_id}>"
