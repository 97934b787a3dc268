"""
Entry Generator - turns parsed scraped documents into draft KB entries.

For each parsed unit of a session (in sequence order):
1. compute the stable entry_id; skip it if an entry already exists
2. build the draft {title, text, canonical_citation, type, subtype}
3. enrich(draft) and embed(text)
4. insert an unpublished KBEntry

enrich and embed are plain callables, so any client (or a test double)
can be plugged in. A failure on one unit is recorded and the run moves on.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List

from models.kb_entry import KBEntry
from scrapers.citation import entry_type, generate_entry_id
from scrapers.exceptions import SessionNotFoundError
from scrapers.models import ScrapedDocument, ScrapingSession

logger = logging.getLogger(__name__)

PROVENANCE_SOURCE = "lawphil_scraping"
ENRICHMENT_COLUMNS = ("summary", "tags", "topics")


@dataclass
class GenerationResult:
    total_documents: int = 0
    created_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    created_entry_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def split_citation(extracted_text: str):
    """Split persisted "citation\\nbody" text into (citation, body)."""
    citation, _, body = (extracted_text or "").partition("\n")
    return citation.strip(), body.strip()


class EntryGenerator:
    """Generates draft KB entries for a scraping session."""

    def __init__(
        self,
        db_session,
        enrich: Callable[[Dict[str, Any]], Dict[str, Any]],
        embed: Callable[[str], List[float]],
    ):
        self.db_session = db_session
        self.enrich = enrich
        self.embed = embed

    def generate_for_session(self, session_id: str) -> GenerationResult:
        """
        Generate entries for every parsed unit of a session.

        Raises:
            SessionNotFoundError: Unknown session
        """
        exists = self.db_session.query(ScrapingSession.id).filter_by(session_id=session_id).first()
        if exists is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")

        documents = (
            self.db_session.query(ScrapedDocument)
            .filter(
                ScrapedDocument.session_id == session_id,
                ScrapedDocument.parse_status == "parsed",
                ScrapedDocument.sequence_index.isnot(None),
            )
            .order_by(ScrapedDocument.sequence_index, ScrapedDocument.id)
            .all()
        )

        result = GenerationResult(total_documents=len(documents))
        logger.info(f"Generating entries for session {session_id}: {len(documents)} documents")

        for document in documents:
            metadata = document.doc_metadata or {}
            entry_id = generate_entry_id(metadata)

            if self.db_session.query(KBEntry.id).filter_by(entry_id=entry_id).first():
                result.skipped_count += 1
                continue

            try:
                self._create_entry(document, entry_id, metadata)
                self.db_session.commit()
                result.created_count += 1
                result.created_entry_ids.append(entry_id)
            except Exception as e:
                self.db_session.rollback()
                logger.error(f"Entry generation failed for {entry_id}: {e}")
                result.error_count += 1
                result.errors.append({"entry_id": entry_id, "error": str(e)})

        logger.info(
            f"Entry generation for {session_id}: {result.created_count} created, "
            f"{result.skipped_count} skipped, {result.error_count} errors"
        )
        return result

    def _create_entry(self, document: ScrapedDocument, entry_id: str, metadata: Dict[str, Any]) -> KBEntry:
        citation, body = split_citation(document.extracted_text)
        kind, subtype = entry_type(metadata)

        draft = {
            "title": citation,
            "text": body,
            "canonical_citation": citation,
            "type": kind,
            "subtype": subtype,
        }
        enriched = dict(self.enrich(draft) or {})
        embedding = self.embed(body)

        entry = KBEntry(
            entry_id=entry_id,
            type=kind,
            entry_subtype=subtype,
            title=citation,
            canonical_citation=citation,
            text=body,
            summary=enriched.get("summary"),
            tags=enriched.get("tags") or [],
            topics=enriched.get("topics") or list(metadata.get("topics") or []),
            enrichment={k: v for k, v in enriched.items() if k not in ENRICHMENT_COLUMNS},
            embedding=list(embedding) if embedding is not None else None,
            source_document_id=document.id,
            session_id=document.session_id,
            provenance={
                "source": PROVENANCE_SOURCE,
                "session_id": document.session_id,
                "source_url": document.canonical_url,
                "source_hash": document.source_hash,
            },
        )
        self.db_session.add(entry)
        self.db_session.flush()
        return entry
