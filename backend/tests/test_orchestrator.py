"""
Tests for the scraping orchestrator.

Runs against in-memory SQLite (the upsert SQL is shared with PostgreSQL)
with a mocked fetcher.
"""

import copy
import logging
from unittest.mock import Mock

import pytest

from pages import lawphil_page
from scrapers.exceptions import (
    FetchError,
    IncompleteHTMLError,
    NoContentParsedError,
    SessionNotFoundError,
    SessionStateError,
    UnknownParserError,
)
from scrapers.fetcher import FetchResult
from scrapers.models import ScrapedDocument, ScrapingSession
from scrapers.orchestrator import CONSTITUTION_1987_URL, ScrapingOrchestrator
from scrapers.scraper_config import DEFAULT_SCRAPER_CONFIG
from scrapers.utils.hashing import compute_content_hash

URL = CONSTITUTION_1987_URL

CONSTITUTION_BODY = (
    "<p>PREAMBLE</p>"
    "<p>We, the sovereign Filipino people, imploring the aid of Almighty God, in order "
    "to build a just and humane society, do ordain and promulgate this Constitution.</p>"
    "<p>ARTICLE III</p>"
    "<p>BILL OF RIGHTS</p>"
    "<p>Section 1. No person shall be deprived of life, liberty, or property without due process of law.</p>"
    "<p>Section 2. The right of the people to be secure in their persons shall be inviolable.</p>"
)

# One line holds two sections: the line scanner sees only Section 1
MERGED_SECTIONS_BODY = (
    "<p>ARTICLE II</p>"
    "<p>DECLARATION OF PRINCIPLES</p>"
    "<p>Section 1. The Philippines is a democratic and republican State. "
    "Section 2. The Philippines renounces war as an instrument of national policy.</p>"
)

# Article II has a merged line; Article III follows it in the source
MERGED_THEN_NEXT_ARTICLE_BODY = MERGED_SECTIONS_BODY + (
    "<p>ARTICLE III</p>"
    "<p>BILL OF RIGHTS</p>"
    "<p>Section 1. No person shall be deprived of life, liberty, or property without due process of law.</p>"
)

COMMISSIONS_BODY = (
    "<p>ARTICLE IX</p>"
    "<p>CONSTITUTIONAL COMMISSIONS</p>"
    "<p>A. COMMON PROVISIONS</p>"
    "<p>Section 1. The Constitutional Commissions, which shall be independent, are the Civil "
    "Service Commission, the Commission on Elections, and the Commission on Audit.</p>"
    "<p>C. THE COMMISSION ON ELECTIONS</p>"
    "<p>Section 1. There shall be a Commission on Elections composed of a Chairman and six Commissioners.</p>"
    "<p>D. THE COMMISSION ON AUDIT</p>"
    "<p>Section 1. There shall be a Commission on Audit composed of a Chairman and two Commissioners.</p>"
)


def make_config(min_units=0, min_html_length=1000):
    config = copy.deepcopy(DEFAULT_SCRAPER_CONFIG)
    config["min_units"] = {"constitution_1987": min_units, "acts": 0}
    config["sanity"]["min_html_length"] = min_html_length
    return config


def fetch_result(html, url=URL):
    return FetchResult(url=url, html=html, content_hash=compute_content_hash(html), status_code=200)


@pytest.fixture
def fetcher():
    fetcher = Mock()
    fetcher.fetch_with_retry.return_value = fetch_result(lawphil_page(CONSTITUTION_BODY))
    return fetcher


@pytest.fixture
def orchestrator(db_session, fetcher):
    return ScrapingOrchestrator(db_session, fetcher=fetcher, config=make_config())


@pytest.fixture
def session_id(orchestrator):
    return orchestrator.start_session("constitution_1987", URL, "tester")


def unit_rows(db_session, session_id=None):
    query = db_session.query(ScrapedDocument).filter(ScrapedDocument.sequence_index.isnot(None))
    if session_id:
        query = query.filter(ScrapedDocument.session_id == session_id)
    return query.order_by(ScrapedDocument.sequence_index).all()


# =============================================================================
# Sessions
# =============================================================================

class TestSessions:
    """Session lifecycle."""

    def test_start_session(self, orchestrator, db_session, session_id):
        """A new session is running with its operator recorded."""
        session = db_session.query(ScrapingSession).filter_by(session_id=session_id).one()
        assert session.status == "running"
        assert session.operator == "tester"
        assert len(session_id) == 36

    def test_complete_session(self, orchestrator, session_id):
        """running -> completed sets finished_at."""
        session = orchestrator.complete_session(session_id)
        assert session.status == "completed"
        assert session.finished_at is not None

    def test_terminal_session_cannot_transition(self, orchestrator, session_id):
        """completed and failed are terminal."""
        orchestrator.complete_session(session_id)
        with pytest.raises(SessionStateError):
            orchestrator.fail_session(session_id, "late failure")

    def test_fail_session_records_error(self, orchestrator, session_id):
        """running -> failed stores the message."""
        session = orchestrator.fail_session(session_id, RuntimeError("site down"))
        assert session.status == "failed"
        assert session.error_message == "site down"

    def test_unknown_session(self, orchestrator):
        """Unknown ids raise SessionNotFoundError; status returns None."""
        with pytest.raises(SessionNotFoundError):
            orchestrator.complete_session("missing")
        assert orchestrator.get_session_status("missing") is None

    def test_list_sessions_newest_first(self, orchestrator):
        """Sessions are listed newest first with counts."""
        first = orchestrator.start_session("constitution_1987", URL)
        second = orchestrator.start_session("acts", "https://lawphil.net/statutes/acts/act1930/act1930.html")

        sessions = orchestrator.list_sessions(limit=10)

        assert [s["session_id"] for s in sessions[:2]] == [second, first]
        assert sessions[0]["total_documents"] == 0


# =============================================================================
# Processing
# =============================================================================

class TestProcessUrl:
    """Fetch, gate, parse, persist."""

    def test_units_persisted(self, orchestrator, db_session, session_id):
        """Raw page plus one row per unit are stored."""
        result = orchestrator.process_url(session_id, URL, "constitution_1987")

        assert result.units_parsed == 3
        assert result.units_saved == 3
        assert result.fallback_used is False

        rows = unit_rows(db_session, session_id)
        assert [r.sequence_index for r in rows] == [0, 1, 2]
        assert rows[0].canonical_url == f"{URL}#preamble"
        assert rows[1].canonical_url == f"{URL}#art3-sec1"
        assert rows[1].extracted_text.startswith("1987 Constitution, Article III, BILL OF RIGHTS, Section 1\n")
        assert rows[1].doc_metadata["article_number"] == 3
        assert rows[1].source_hash == f"{result.content_hash}-1"

        raw = db_session.get(ScrapedDocument, result.document_id)
        assert raw.sequence_index is None
        assert raw.raw_html.startswith("<html>")
        assert raw.doc_metadata["title"] == "LawPhil"

    def test_session_status_counts(self, orchestrator, session_id):
        """Status counts raw and unit rows."""
        orchestrator.process_url(session_id, URL, "constitution_1987")

        status = orchestrator.get_session_status(session_id)
        assert status["total_documents"] == 4
        assert status["parsed_documents"] == 4
        assert status["failed_documents"] == 0

    def test_session_documents_in_order(self, orchestrator, session_id):
        """get_session_documents returns unit rows by sequence."""
        orchestrator.process_url(session_id, URL, "constitution_1987")

        documents = orchestrator.get_session_documents(session_id)
        assert [d.sequence_index for d in documents] == [0, 1, 2]

    def test_reprocess_is_idempotent(self, orchestrator, db_session, session_id):
        """Unchanged content updates rows in place."""
        first = orchestrator.process_url(session_id, URL, "constitution_1987")
        count = db_session.query(ScrapedDocument).count()

        second = orchestrator.process_url(session_id, URL, "constitution_1987")

        assert second.document_id == first.document_id
        assert db_session.query(ScrapedDocument).count() == count

    def test_changed_content_updated_in_place(self, orchestrator, fetcher, db_session, session_id):
        """A changed page rewrites existing rows instead of adding new ones."""
        orchestrator.process_url(session_id, URL, "constitution_1987")
        count = db_session.query(ScrapedDocument).count()

        changed = CONSTITUTION_BODY.replace("shall be inviolable", "shall remain inviolable")
        fetcher.fetch_with_retry.return_value = fetch_result(lawphil_page(changed))
        result = orchestrator.process_url(session_id, URL, "constitution_1987")

        assert db_session.query(ScrapedDocument).count() == count
        section_2 = db_session.query(ScrapedDocument).filter_by(canonical_url=f"{URL}#art3-sec2").one()
        assert "shall remain inviolable" in section_2.extracted_text
        assert section_2.source_hash == f"{result.content_hash}-2"

    def test_fragment_stripped_from_url(self, orchestrator, fetcher, session_id):
        """The page is fetched and stored under its canonical URL."""
        result = orchestrator.process_url(session_id, f"{URL}#article-3", "constitution_1987")

        fetcher.fetch_with_retry.assert_called_once_with(URL)
        assert result.canonical_url == URL


class TestFallback:
    """Text fallback merge."""

    def test_fallback_fills_missing_sections(self, db_session, fetcher, session_id, caplog):
        """Below min_units the fallback adds sections the primary missed."""
        fetcher.fetch_with_retry.return_value = fetch_result(lawphil_page(MERGED_SECTIONS_BODY))
        orchestrator = ScrapingOrchestrator(db_session, fetcher=fetcher, config=make_config(min_units=5))

        with caplog.at_level(logging.WARNING, logger="scrapers.orchestrator"):
            result = orchestrator.process_url(session_id, URL, "constitution_1987")

        assert result.fallback_used is True
        assert result.units_parsed == 1
        assert result.units_saved == 2

        rows = unit_rows(db_session, session_id)
        assert [r.doc_metadata["section_number"] for r in rows] == ["1", "2"]
        assert [r.sequence_index for r in rows] == [0, 1]
        assert "Section 2." in rows[0].extracted_text
        assert any("running text fallback" in r.getMessage() for r in caplog.records)

    def test_fallback_fills_at_source_position(self, db_session, fetcher, session_id):
        """A filled section sits where it appears in the page, under its article title."""
        fetcher.fetch_with_retry.return_value = fetch_result(lawphil_page(MERGED_THEN_NEXT_ARTICLE_BODY))
        orchestrator = ScrapingOrchestrator(db_session, fetcher=fetcher, config=make_config(min_units=5))

        orchestrator.process_url(session_id, URL, "constitution_1987")

        rows = unit_rows(db_session, session_id)
        assert [r.canonical_url for r in rows] == [
            f"{URL}#art2-sec1", f"{URL}#art2-sec2", f"{URL}#art3-sec1",
        ]
        assert [r.sequence_index for r in rows] == [0, 1, 2]
        assert rows[1].extracted_text.startswith(
            "1987 Constitution, Article II, DECLARATION OF PRINCIPLES, Section 2\n"
        )

    def test_fallback_respects_commission_subparts(self, db_session, fetcher, session_id):
        """Subpart sections are all kept and the fallback adds no subpart-less copy."""
        fetcher.fetch_with_retry.return_value = fetch_result(lawphil_page(COMMISSIONS_BODY))
        orchestrator = ScrapingOrchestrator(db_session, fetcher=fetcher, config=make_config(min_units=5))

        result = orchestrator.process_url(session_id, URL, "constitution_1987")

        assert result.fallback_used is True
        rows = unit_rows(db_session, session_id)
        assert [r.canonical_url for r in rows] == [
            f"{URL}#art9a-sec1", f"{URL}#art9c-sec1", f"{URL}#art9d-sec1",
        ]
        assert "Commission on Audit composed" in rows[2].extracted_text
        assert rows[2].extracted_text.startswith(
            "1987 Constitution, Article IX-D, CONSTITUTIONAL COMMISSIONS, Section 1\n"
        )

    def test_no_fallback_at_threshold(self, orchestrator, session_id):
        """Enough primary units means no fallback."""
        result = orchestrator.process_url(session_id, URL, "constitution_1987")
        assert result.fallback_used is False


# =============================================================================
# Failures
# =============================================================================

class TestFailures:
    """Failure markers and status values."""

    def test_sanity_gate(self, orchestrator, fetcher, db_session, session_id):
        """Short pages are rejected before parsing and marked."""
        fetcher.fetch_with_retry.return_value = fetch_result("<html><body>Access denied</body></html>")

        with pytest.raises(IncompleteHTMLError, match="incomplete"):
            orchestrator.process_url(session_id, URL, "constitution_1987")

        statuses = {r.source_hash: r.parse_status for r in db_session.query(ScrapedDocument).all()}
        assert "failed_incomplete_html" in statuses.values()
        assert statuses["failed"] == "failed"

    def test_frameset_rejected(self, orchestrator, fetcher, session_id):
        """Framesets fail the gate regardless of length."""
        fetcher.fetch_with_retry.return_value = fetch_result(
            lawphil_page("<frameset><frame src='x.html'></frameset>").replace("<body>", "<frameset>", 1)
        )

        with pytest.raises(IncompleteHTMLError):
            orchestrator.process_url(session_id, URL, "constitution_1987")

    def test_no_content(self, orchestrator, fetcher, db_session, session_id):
        """A page with no units marks its raw row failed_no_nodes."""
        fetcher.fetch_with_retry.return_value = fetch_result(lawphil_page("<p>Nothing legal here.</p>"))

        with pytest.raises(NoContentParsedError, match="No content parsed"):
            orchestrator.process_url(session_id, URL, "constitution_1987")

        statuses = {r.parse_status for r in db_session.query(ScrapedDocument).all()}
        assert statuses == {"failed_no_nodes", "failed"}

    def test_fetch_error_writes_marker(self, orchestrator, fetcher, db_session, session_id):
        """Fetch failures propagate after the failed marker is stored."""
        fetcher.fetch_with_retry.side_effect = FetchError("connection refused")

        with pytest.raises(FetchError):
            orchestrator.process_url(session_id, URL, "constitution_1987")

        marker = db_session.query(ScrapedDocument).one()
        assert marker.canonical_url == URL
        assert marker.source_hash == "failed"
        assert marker.parse_status == "failed"
        assert orchestrator.get_session_status(session_id)["failed_documents"] == 1

    def test_unknown_parser(self, orchestrator, fetcher, session_id):
        """Unknown parser keys fail before fetching."""
        with pytest.raises(UnknownParserError):
            orchestrator.process_url(session_id, URL, "statutes_2099")
        fetcher.fetch_with_retry.assert_not_called()

    def test_terminal_session_rejected(self, orchestrator, fetcher, session_id):
        """Completed sessions cannot process URLs."""
        orchestrator.complete_session(session_id)

        with pytest.raises(SessionStateError):
            orchestrator.process_url(session_id, URL, "constitution_1987")
        fetcher.fetch_with_retry.assert_not_called()

    def test_unknown_session_rejected(self, orchestrator, fetcher):
        """Unknown sessions cannot process URLs."""
        with pytest.raises(SessionNotFoundError):
            orchestrator.process_url("missing", URL, "constitution_1987")
        fetcher.fetch_with_retry.assert_not_called()
