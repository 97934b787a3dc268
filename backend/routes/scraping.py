"""
LawPhil Scraping API Routes

Endpoints:
- POST /api/scraping/start - Start a scraping session
- POST /api/scraping/process - Fetch, parse and persist one URL
- POST /api/scraping/acts-year - Process every Act of a year index page
- GET  /api/scraping/session/<id>/status - Session status with document counts
- GET  /api/scraping/session/<id>/documents - Parsed units in source order
- POST /api/scraping/session/<id>/complete - Mark a session completed
- POST /api/scraping/session/<id>/generate-entries - Draft KB entries for a session
- GET  /api/scraping/sessions - Recent sessions
- GET  /api/scraping/draft-entries - Unpublished KB entries
- POST /api/scraping/release-entries - Publish selected drafts
- POST /api/scraping/release-all-entries - Publish every draft
"""
import logging

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from api.contracts import parse_params, validation_error_response
from api.contracts.pydantic_models import (
    ActsYearParams,
    ListSessionsParams,
    ProcessUrlParams,
    ReleaseEntriesParams,
    StartSessionParams,
)
from api.middleware import make_error_response
from models.database import db
from models.kb_entry import KBEntry
from scrapers.acts_scraper import ActsYearScraper
from scrapers.exceptions import NoActsFoundError, SessionNotFoundError, SessionStateError
from scrapers.orchestrator import ScrapingOrchestrator
from services.entry_generator import EntryGenerator

logger = logging.getLogger(__name__)

scraping_bp = Blueprint("scraping", __name__)

MAX_SESSIONS_LIMIT = 500
CONTENT_FAILURE_MARKERS = ("no content parsed", "incomplete")


def get_orchestrator() -> ScrapingOrchestrator:
    """Get or create the request-scoped orchestrator."""
    if not hasattr(g, "scraping_orchestrator"):
        g.scraping_orchestrator = ScrapingOrchestrator(db.session)
    return g.scraping_orchestrator


def get_entry_generator() -> EntryGenerator:
    """Entry generator wired to the default enrichment and embedding clients."""
    from services.embedding_client import get_embedding_client
    from services.enrichment_client import get_enrichment_client

    return EntryGenerator(db.session, get_enrichment_client(), get_embedding_client())


def _is_content_failure(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in CONTENT_FAILURE_MARKERS)


def _session_error_response(error: Exception):
    """404/409 envelopes for session lookup and state errors, else None."""
    if isinstance(error, SessionNotFoundError):
        return make_error_response("SESSION_NOT_FOUND", str(error))
    if isinstance(error, SessionStateError):
        return make_error_response("SESSION_NOT_RUNNING", str(error))
    return None


# =============================================================================
# SESSION ENDPOINTS
# =============================================================================

@scraping_bp.route("/start", methods=["POST"])
def start_session():
    """
    Start a scraping session.

    Body params:
        category: str - 'constitution_1987' or 'acts' (default constitution_1987)
        root_url: str - Root page of the scrape
        operator: str - Who started it (default 'system')

    Returns:
        {success, session_id}
    """
    try:
        params = parse_params(StartSessionParams, request.get_json(silent=True))
    except ValidationError as e:
        return validation_error_response(e)

    try:
        session_id = get_orchestrator().start_session(params.category, params.root_url, params.operator)
        return jsonify({"success": True, "session_id": session_id})
    except Exception as e:
        logger.exception(f"Failed to start session: {e}")
        db.session.rollback()
        return make_error_response("INTERNAL_ERROR", f"Failed to start session: {e}")


@scraping_bp.route("/session/<session_id>/status", methods=["GET"])
def get_session_status(session_id: str):
    """Session fields plus total/parsed/failed document counts."""
    status = get_orchestrator().get_session_status(session_id)
    if status is None:
        return make_error_response("SESSION_NOT_FOUND", f"Session not found: {session_id}")
    return jsonify({"success": True, **status})


@scraping_bp.route("/session/<session_id>/documents", methods=["GET"])
def get_session_documents(session_id: str):
    """Parsed units of a session, ordered by sequence_index."""
    documents = get_orchestrator().get_session_documents(session_id)
    return jsonify({
        "success": True,
        "count": len(documents),
        "documents": [d.to_dict() for d in documents],
    })


@scraping_bp.route("/session/<session_id>/complete", methods=["POST"])
def complete_session(session_id: str):
    """Transition a running session to completed."""
    try:
        session = get_orchestrator().complete_session(session_id)
        return jsonify({"success": True, "session": session.to_dict()})
    except (SessionNotFoundError, SessionStateError) as e:
        return _session_error_response(e)


@scraping_bp.route("/sessions", methods=["GET"])
def list_sessions():
    """
    List recent sessions, newest first.

    Query params:
        limit: int - Max sessions (default 50)
    """
    try:
        params = parse_params(ListSessionsParams, request.args.to_dict())
    except ValidationError as e:
        return validation_error_response(e)

    limit = params.limit if params.limit is not None else 50
    limit = max(1, min(limit, MAX_SESSIONS_LIMIT))

    sessions = get_orchestrator().list_sessions(limit=limit)
    return jsonify({"success": True, "count": len(sessions), "sessions": sessions})


# =============================================================================
# PROCESSING ENDPOINTS
# =============================================================================

@scraping_bp.route("/process", methods=["POST"])
def process_url():
    """
    Fetch, parse and persist one URL within a running session.

    Body params:
        session_id: str - Running session
        url: str - Page to process
        parser_type: str - 'constitution_1987' or 'acts' (default constitution_1987)

    Returns:
        {success, document_id, units_saved, fallback_used, ...}
        422 when the page was incomplete or produced no units
    """
    try:
        params = parse_params(ProcessUrlParams, request.get_json(silent=True))
    except ValidationError as e:
        return validation_error_response(e)

    try:
        result = get_orchestrator().process_url(params.session_id, params.url, params.parser_type)
        return jsonify({"success": True, **result.to_dict()})
    except (SessionNotFoundError, SessionStateError) as e:
        return _session_error_response(e)
    except Exception as e:
        if _is_content_failure(e):
            logger.warning(f"Content failure for {params.url}: {e}")
            return make_error_response("CONTENT_NOT_PARSED", str(e))
        logger.exception(f"Processing failed for {params.url}: {e}")
        return make_error_response("PROCESSING_FAILED", str(e))


@scraping_bp.route("/acts-year", methods=["POST"])
def process_acts_year():
    """
    Process every Act listed on a year index page.

    Body params:
        session_id: str - Running session
        url: str - Year page, e.g. https://lawphil.net/statutes/acts/act1930/act1930.html

    Returns:
        {success, year_url, total_acts, succeeded_count, failed_count, ...}
    """
    try:
        params = parse_params(ActsYearParams, request.get_json(silent=True))
    except ValidationError as e:
        return validation_error_response(e)

    status = get_orchestrator().get_session_status(params.session_id)
    if status is None:
        return make_error_response("SESSION_NOT_FOUND", f"Session not found: {params.session_id}")
    if status["status"] != "running":
        return make_error_response(
            "SESSION_NOT_RUNNING",
            f"Session {params.session_id} is {status['status']}; expected running",
        )

    app = current_app._get_current_object()

    def process_act(session_id: str, act_url: str):
        # Worker threads need their own app context and scoped session
        with app.app_context():
            return ScrapingOrchestrator(db.session).process_url(session_id, act_url, "acts")

    try:
        result = ActsYearScraper(process_act=process_act).scrape_year(params.session_id, params.url)
        return jsonify({"success": True, **result.to_dict()})
    except NoActsFoundError as e:
        return make_error_response("CONTENT_NOT_PARSED", str(e))
    except ValueError as e:
        return make_error_response("BAD_REQUEST", str(e))
    except Exception as e:
        logger.exception(f"Acts year processing failed for {params.url}: {e}")
        return make_error_response("PROCESSING_FAILED", str(e))


# =============================================================================
# KB ENTRY ENDPOINTS
# =============================================================================

@scraping_bp.route("/session/<session_id>/generate-entries", methods=["POST"])
def generate_entries(session_id: str):
    """
    Generate draft KB entries from a session's parsed units.

    Returns:
        {success, total_documents, created_count, skipped_count, error_count, errors}
    """
    try:
        result = get_entry_generator().generate_for_session(session_id)
        return jsonify({"success": True, **result.to_dict()})
    except SessionNotFoundError as e:
        return _session_error_response(e)
    except Exception as e:
        logger.exception(f"Entry generation failed for session {session_id}: {e}")
        return make_error_response("GENERATION_FAILED", str(e))


@scraping_bp.route("/draft-entries", methods=["GET"])
def get_draft_entries():
    """Unpublished KB entries, oldest first."""
    entries = (
        db.session.query(KBEntry)
        .filter(KBEntry.published_at.is_(None))
        .order_by(KBEntry.created_at, KBEntry.id)
        .all()
    )
    return jsonify({
        "success": True,
        "count": len(entries),
        "entries": [e.to_summary_dict() for e in entries],
    })


def _release(entries):
    for entry in entries:
        entry.publish()
    db.session.commit()
    released = [e.entry_id for e in entries]
    logger.info(f"Released {len(released)} KB entries")
    return jsonify({
        "success": True,
        "released_count": len(released),
        "released_entries": released,
    })


@scraping_bp.route("/release-entries", methods=["POST"])
def release_entries():
    """
    Publish selected draft entries.

    Body params:
        entry_ids: List[str] - Entry ids to publish (required, non-empty)
    """
    try:
        params = parse_params(ReleaseEntriesParams, request.get_json(silent=True))
    except ValidationError as e:
        return validation_error_response(e)

    try:
        entries = (
            db.session.query(KBEntry)
            .filter(KBEntry.entry_id.in_(params.entry_ids), KBEntry.published_at.is_(None))
            .all()
        )
        return _release(entries)
    except Exception as e:
        logger.exception(f"Release failed: {e}")
        db.session.rollback()
        return make_error_response("INTERNAL_ERROR", f"Release failed: {e}")


@scraping_bp.route("/release-all-entries", methods=["POST"])
def release_all_entries():
    """Publish every draft entry."""
    try:
        entries = db.session.query(KBEntry).filter(KBEntry.published_at.is_(None)).all()
        return _release(entries)
    except Exception as e:
        logger.exception(f"Release failed: {e}")
        db.session.rollback()
        return make_error_response("INTERNAL_ERROR", f"Release failed: {e}")
