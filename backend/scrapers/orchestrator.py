"""
Scraping Orchestrator - Coordinates fetch, parse, and persistence.

Responsibilities:
1. Manages scraping sessions (start, complete, fail, status)
2. Fetches pages through the rate-limited fetcher
3. Rejects block pages before parsing (sanity gate)
4. Runs the structural parser, with the flat-text fallback when the
   primary parser returns too few units
5. Persists the raw page and every unit with idempotent upserts

Persistence shape (scraped_documents):
- raw page row: (canonical_url, content_hash), raw_html + page metadata
- unit row: (canonical_url#fragment, "<content_hash>-<sequence_index>")
- failure marker: (canonical_url, "failed")

INSERT ... ON CONFLICT (canonical_url, source_hash) DO UPDATE is the only
concurrency guard; the statement is valid on PostgreSQL and SQLite.
"""
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, text

from .citation import normalize_unit, unit_fragment
from .exceptions import (
    IncompleteHTMLError,
    NoContentParsedError,
    SessionNotFoundError,
    SessionStateError,
    UnknownParserError,
)
from .fetcher import DocumentFetcher, get_canonical_url
from .metadata import extract_metadata
from .models import FAILED_MARKER_HASH, ScrapedDocument, ScrapingSession
from .parsers import PARSER_REGISTRY, LegalUnit, TextFallbackParser
from .scraper_config import get_min_units, get_scraper_config
from .utils.hashing import compute_unit_hash

logger = logging.getLogger(__name__)


CONSTITUTION_1987_URL = "https://lawphil.net/consti/cons1987.html"

RAW_UPDATE_FIELDS = ("session_id", "raw_html", "metadata", "parse_status")
UNIT_UPDATE_FIELDS = ("session_id", "extracted_text", "metadata", "sequence_index", "parse_status")
MARKER_UPDATE_FIELDS = ("session_id", "parse_status")


def _build_upsert_sql(update_fields) -> str:
    update_set = ", ".join(f"{f} = EXCLUDED.{f}" for f in update_fields)
    return f"""
        INSERT INTO scraped_documents
            (session_id, canonical_url, source_hash, raw_html, extracted_text,
             metadata, sequence_index, parse_status, created_at, updated_at)
        VALUES
            (:session_id, :canonical_url, :source_hash, :raw_html, :extracted_text,
             :metadata, :sequence_index, :parse_status, :now, :now)
        ON CONFLICT (canonical_url, source_hash)
        DO UPDATE SET {update_set}, updated_at = EXCLUDED.updated_at
    """


# Moves the newest row of a URL left behind by an older fetch onto the new
# hash, so changed content is updated in place rather than duplicated.
REBASE_SQL = """
    UPDATE scraped_documents
    SET source_hash = :source_hash, updated_at = :now
    WHERE id = (
        SELECT id FROM scraped_documents
        WHERE canonical_url = :canonical_url
          AND source_hash <> :failed_hash
          AND source_hash NOT LIKE :current_prefix
        ORDER BY updated_at DESC, id DESC
        LIMIT 1
    )
    AND NOT EXISTS (
        SELECT 1 FROM scraped_documents
        WHERE canonical_url = :canonical_url AND source_hash = :source_hash
    )
"""


def _insertion_index(units: List[LegalUnit], unit: LegalUnit) -> int:
    """Index of the first unit that comes after `unit` in document order."""
    position = unit.source_position()
    for index, existing in enumerate(units):
        if existing.source_position() > position:
            return index
    return len(units)


@dataclass
class ProcessResult:
    """Outcome of processing one URL."""
    document_id: int
    canonical_url: str
    content_hash: str
    units_parsed: int
    units_saved: int
    fallback_used: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


class ScrapingOrchestrator:
    """
    Main orchestrator for LawPhil scraping sessions.

    Sessions move running -> completed | failed; documents are only
    processed while a session is running.
    """

    def __init__(
        self,
        db_session,
        fetcher: Optional[DocumentFetcher] = None,
        parsers: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            db_session: SQLAlchemy database session
            fetcher: DocumentFetcher (a default one is built lazily)
            parsers: Parser instances by key. Defaults to PARSER_REGISTRY.
            config: Full scraper config. Defaults to the global one.
        """
        self.db_session = db_session
        self.config = config or get_scraper_config()
        self._fetcher = fetcher
        self.parsers = parsers or {key: cls() for key, cls in PARSER_REGISTRY.items()}
        self.fallback_parser = TextFallbackParser()

        sanity = self.config.get("sanity", {})
        self.min_html_length = int(sanity.get("min_html_length", 5000))
        self.sniff_chars = int(sanity.get("sniff_chars", 2000))

    @property
    def fetcher(self) -> DocumentFetcher:
        if self._fetcher is None:
            self._fetcher = DocumentFetcher(config=self.config["fetcher"])
        return self._fetcher

    # =========================================================================
    # Sessions
    # =========================================================================

    def start_session(self, category: str, root_url: str, operator: str = "system") -> str:
        """
        Create a running session.

        Returns:
            session_id (UUID string)
        """
        session = ScrapingSession(category=category, root_url=root_url, operator=operator or "system")
        self.db_session.add(session)
        self.db_session.commit()
        logger.info(f"Started scraping session {session.session_id} ({category}) for {root_url}")
        return session.session_id

    def _get_session(self, session_id: str) -> ScrapingSession:
        session = self.db_session.query(ScrapingSession).filter_by(session_id=session_id).first()
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def _require_running(self, session: ScrapingSession):
        if session.is_terminal:
            raise SessionStateError(
                f"Session {session.session_id} is {session.status}; expected running"
            )

    def complete_session(self, session_id: str) -> ScrapingSession:
        """Transition running -> completed."""
        session = self._get_session(session_id)
        self._require_running(session)
        session.complete()
        self.db_session.commit()
        logger.info(f"Session completed: {session_id} ({session.duration_seconds:.1f}s)")
        return session

    def fail_session(self, session_id: str, error) -> ScrapingSession:
        """Transition running -> failed."""
        session = self._get_session(session_id)
        self._require_running(session)
        session.fail(error)
        self.db_session.commit()
        logger.error(f"Session failed: {session_id}: {error}")
        return session

    def _document_counts(self):
        return (
            func.count(ScrapedDocument.id).label("total_documents"),
            func.sum(case((ScrapedDocument.parse_status == "parsed", 1), else_=0)).label("parsed_documents"),
            func.sum(case((ScrapedDocument.parse_status.like("failed%"), 1), else_=0)).label("failed_documents"),
        )

    @staticmethod
    def _with_counts(session: ScrapingSession, total, parsed, failed) -> Dict[str, Any]:
        result = session.to_dict()
        result["total_documents"] = int(total or 0)
        result["parsed_documents"] = int(parsed or 0)
        result["failed_documents"] = int(failed or 0)
        return result

    def get_session_status(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Session fields plus document counts, or None if unknown."""
        session = self.db_session.query(ScrapingSession).filter_by(session_id=session_id).first()
        if session is None:
            return None

        total, parsed, failed = (
            self.db_session.query(*self._document_counts())
            .filter(ScrapedDocument.session_id == session_id)
            .one()
        )
        return self._with_counts(session, total, parsed, failed)

    def get_session_documents(self, session_id: str) -> List[ScrapedDocument]:
        """Parsed unit rows of a session in source order."""
        return (
            self.db_session.query(ScrapedDocument)
            .filter(
                ScrapedDocument.session_id == session_id,
                ScrapedDocument.parse_status == "parsed",
                ScrapedDocument.sequence_index.isnot(None),
            )
            .order_by(ScrapedDocument.sequence_index, ScrapedDocument.id)
            .all()
        )

    def list_sessions(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Newest sessions first, with document counts."""
        rows = (
            self.db_session.query(ScrapingSession, *self._document_counts())
            .outerjoin(ScrapedDocument, ScrapedDocument.session_id == ScrapingSession.session_id)
            .group_by(ScrapingSession.id)
            .order_by(ScrapingSession.started_at.desc(), ScrapingSession.id.desc())
            .limit(limit)
            .all()
        )
        return [self._with_counts(session, total, parsed, failed) for session, total, parsed, failed in rows]

    # =========================================================================
    # Processing
    # =========================================================================

    def process_constitution_1987(self, session_id: str) -> ProcessResult:
        return self.process_url(session_id, CONSTITUTION_1987_URL, "constitution_1987")

    def process_url(self, session_id: str, url: str, parser_type: str = "constitution_1987") -> ProcessResult:
        """
        Fetch, gate, parse and persist one URL.

        Any failure writes a "failed" marker row for the URL before the
        exception propagates.

        Raises:
            SessionNotFoundError / SessionStateError: before any fetch
            IncompleteHTMLError: page failed the sanity gate
            NoContentParsedError: neither parser produced units
            UnknownParserError: unknown parser_type
            FetchError: fetch failed after retries
        """
        session = self._get_session(session_id)
        self._require_running(session)

        canonical_url = get_canonical_url(url)
        logger.info(f"Processing {canonical_url} with parser {parser_type} (session {session_id})")

        try:
            return self._process(session_id, canonical_url, parser_type)
        except Exception as e:
            logger.error(f"Failed to process {canonical_url}: {e}")
            self.db_session.rollback()
            try:
                self._upsert(
                    MARKER_UPDATE_FIELDS,
                    session_id=session_id,
                    canonical_url=canonical_url,
                    source_hash=FAILED_MARKER_HASH,
                    parse_status="failed",
                )
                self.db_session.commit()
            except Exception:
                logger.exception(f"Could not record failure marker for {canonical_url}")
                self.db_session.rollback()
            raise

    def _process(self, session_id: str, canonical_url: str, parser_type: str) -> ProcessResult:
        parser = self.parsers.get(parser_type)
        if parser is None:
            raise UnknownParserError(f"No parser found for type: {parser_type}")

        fetched = self.fetcher.fetch_with_retry(canonical_url)
        html, content_hash = fetched.html, fetched.content_hash

        if not self._passes_sanity_gate(html):
            logger.warning(f"Fetched HTML looks incomplete or blocked: {canonical_url} ({len(html)} chars)")
            self._upsert(
                MARKER_UPDATE_FIELDS,
                session_id=session_id,
                canonical_url=canonical_url,
                source_hash=content_hash,
                parse_status="failed_incomplete_html",
            )
            self.db_session.commit()
            raise IncompleteHTMLError("Fetched HTML incomplete or blocked")

        self._rebase_changed_content(canonical_url, content_hash, content_hash)
        document_id = self._upsert(
            RAW_UPDATE_FIELDS,
            session_id=session_id,
            canonical_url=canonical_url,
            source_hash=content_hash,
            raw_html=html,
            metadata=extract_metadata(html, canonical_url),
            parse_status="parsed",
        )
        self.db_session.commit()

        units = parser.parse(canonical_url, html)
        units_parsed = len(units)
        units, fallback_used = self._apply_fallback(units, canonical_url, html, parser_type)

        if not units:
            self.db_session.execute(
                text("UPDATE scraped_documents SET parse_status = 'failed_no_nodes', updated_at = :now WHERE id = :id"),
                {"id": document_id, "now": datetime.utcnow()},
            )
            self.db_session.commit()
            raise NoContentParsedError("No content parsed from document")

        units_saved = 0
        for unit in units:
            normalized = normalize_unit(unit)
            if normalized is None:
                continue
            unit_url = f"{canonical_url}#{unit_fragment(unit.metadata)}"
            unit_hash = compute_unit_hash(content_hash, unit.sequence_index)

            self._rebase_changed_content(unit_url, unit_hash, content_hash)
            self._upsert(
                UNIT_UPDATE_FIELDS,
                session_id=session_id,
                canonical_url=unit_url,
                source_hash=unit_hash,
                extracted_text=normalized.header_plus_body,
                metadata=unit.metadata,
                sequence_index=unit.sequence_index,
                parse_status="parsed",
            )
            units_saved += 1

        self.db_session.commit()
        logger.info(
            f"Processed {canonical_url}: {units_parsed} parsed, {units_saved} saved"
            f"{' (fallback merged)' if fallback_used else ''}"
        )

        return ProcessResult(
            document_id=document_id,
            canonical_url=canonical_url,
            content_hash=content_hash,
            units_parsed=units_parsed,
            units_saved=units_saved,
            fallback_used=fallback_used,
        )

    def _passes_sanity_gate(self, html: str) -> bool:
        if len(html) < self.min_html_length:
            return False
        head = html[:self.sniff_chars].lower()
        return "<frameset" not in head and 'meta http-equiv="refresh"' not in head

    def _apply_fallback(self, units: List[LegalUnit], canonical_url: str, html: str, parser_type: str):
        """
        Merge text-fallback units when the primary parser found too few.

        Every primary unit is kept. A fallback unit is used only when no
        primary unit has its (article, section) key, whatever the primary
        subpart; it borrows the primary article title and is inserted at its
        source position. Sequence indices are reassigned over the merged list.

        Returns:
            (units, fallback_used)
        """
        min_units = get_min_units(self.config, parser_type)
        if len(units) >= min_units:
            return units, False

        logger.warning(f"Primary parse yielded {len(units)} units (< {min_units}); running text fallback")
        merged = list(units)
        seen = {unit.unit_key() for unit in units}
        article_titles = {}
        for unit in units:
            if unit.metadata.get("article_title"):
                article_titles.setdefault(unit.article_number, unit.metadata["article_title"])

        filled = 0
        for unit in self.fallback_parser.parse(canonical_url, html):
            key = unit.unit_key()
            if key in seen:
                continue
            seen.add(key)
            title = article_titles.get(unit.article_number, "")
            if title:
                unit.metadata["article_title"] = title
                unit.metadata["title"] = f"{title} - Section {unit.section_number}"
            merged.insert(_insertion_index(merged, unit), unit)
            filled += 1

        for index, unit in enumerate(merged):
            unit.sequence_index = index
        logger.info(f"Text fallback filled {filled} missing sections")
        return merged, True

    # =========================================================================
    # Persistence
    # =========================================================================

    def _upsert(
        self,
        update_fields,
        session_id: str,
        canonical_url: str,
        source_hash: str,
        parse_status: str,
        raw_html: Optional[str] = None,
        extracted_text: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        sequence_index: Optional[int] = None,
    ) -> int:
        """Insert or update one scraped_documents row and return its id."""
        self.db_session.execute(text(_build_upsert_sql(update_fields)), {
            "session_id": session_id,
            "canonical_url": canonical_url,
            "source_hash": source_hash,
            "raw_html": raw_html,
            "extracted_text": extracted_text,
            "metadata": json.dumps(metadata or {}, default=str),
            "sequence_index": sequence_index,
            "parse_status": parse_status,
            "now": datetime.utcnow(),
        })
        return self.db_session.execute(
            text("SELECT id FROM scraped_documents WHERE canonical_url = :canonical_url AND source_hash = :source_hash"),
            {"canonical_url": canonical_url, "source_hash": source_hash},
        ).scalar()

    def _rebase_changed_content(self, canonical_url: str, source_hash: str, content_hash: str):
        self.db_session.execute(text(REBASE_SQL), {
            "canonical_url": canonical_url,
            "source_hash": source_hash,
            "failed_hash": FAILED_MARKER_HASH,
            "current_prefix": f"{content_hash}%",
            "now": datetime.utcnow(),
        })
