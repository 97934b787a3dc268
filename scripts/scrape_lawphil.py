"""
LawPhil Scraper CLI - Scrapes Philippine legal documents from lawphil.net

Usage:
    python scripts/scrape_lawphil.py constitution
    python scripts/scrape_lawphil.py acts-year https://lawphil.net/statutes/acts/act1930/act1930.html
    python scripts/scrape_lawphil.py url https://lawphil.net/statutes/acts/act1930/act_3815_1930.html --parser acts
    python scripts/scrape_lawphil.py status <session_id>
    python scripts/scrape_lawphil.py generate <session_id>

Pipeline: Fetch (rate-limited) -> Sanity gate -> Parse -> Persist units
          -> (generate) Enrich + embed -> Draft KB entries
"""

import sys
import os
import argparse
import logging

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

from flask import Flask
from config import Config
from models.database import db


def create_app():
    """Create Flask app for database access"""
    app = Flask(__name__)
    app.config.from_object(Config)
    db.init_app(app)
    return app


def _init_db():
    from scrapers.models import ScrapingSession, ScrapedDocument  # noqa: F401
    from models.kb_entry import KBEntry  # noqa: F401
    db.create_all()


def _print_process_result(result):
    print(f"Document id:   {result.document_id}")
    print(f"URL:           {result.canonical_url}")
    print(f"Units parsed:  {result.units_parsed}")
    print(f"Units saved:   {result.units_saved}")
    if result.fallback_used:
        print("Fallback:      text fallback merged")


def _run_single(category: str, url: str, parser_type: str, operator: str) -> int:
    from scrapers.orchestrator import ScrapingOrchestrator
    from scrapers.exceptions import ScrapingError

    app = create_app()

    with app.app_context():
        _init_db()
        orchestrator = ScrapingOrchestrator(db.session)
        session_id = orchestrator.start_session(category, url, operator)

        print("=" * 60)
        print(f"LawPhil Scraper - {parser_type}")
        print(f"Session: {session_id}")
        print("=" * 60)

        try:
            result = orchestrator.process_url(session_id, url, parser_type)
        except ScrapingError as e:
            orchestrator.fail_session(session_id, e)
            print(f"\nFAILED: {e}")
            return 1

        orchestrator.complete_session(session_id)
        _print_process_result(result)
        print("=" * 60)
        return 0


def scrape_constitution(operator: str) -> int:
    """Scrape the 1987 Constitution in a new session."""
    from scrapers.orchestrator import CONSTITUTION_1987_URL
    return _run_single("constitution_1987", CONSTITUTION_1987_URL, "constitution_1987", operator)


def scrape_url(url: str, parser_type: str, operator: str) -> int:
    """Scrape a single page in a new session."""
    category = "acts" if parser_type == "acts" else parser_type
    return _run_single(category, url, parser_type, operator)


def scrape_acts_year(year_url: str, operator: str) -> int:
    """Scrape every Act listed on a year index page."""
    from scrapers.acts_scraper import ActsYearScraper
    from scrapers.orchestrator import ScrapingOrchestrator

    app = create_app()

    with app.app_context():
        _init_db()
        orchestrator = ScrapingOrchestrator(db.session)
        session_id = orchestrator.start_session("acts", year_url, operator)

    def process_act(session_id, act_url):
        with app.app_context():
            return ScrapingOrchestrator(db.session).process_url(session_id, act_url, "acts")

    print("=" * 60)
    print(f"LawPhil Acts Scraper - {year_url}")
    print(f"Session: {session_id}")
    print("=" * 60)

    with app.app_context():
        orchestrator = ScrapingOrchestrator(db.session)
        try:
            result = ActsYearScraper(process_act=process_act).scrape_year(session_id, year_url)
        except Exception as e:
            orchestrator.fail_session(session_id, e)
            print(f"\nFAILED: {e}")
            return 1
        orchestrator.complete_session(session_id)

    print(f"Acts found:     {len(result.act_urls)}")
    print(f"Succeeded:      {len(result.succeeded)}")
    print(f"Failed:         {len(result.failed)}")
    if result.failed:
        print(f"\nErrors ({len(result.failed)}):")
        for failure in result.failed[:5]:
            print(f"  - {failure['url']}: {failure['error']}")
        if len(result.failed) > 5:
            print(f"  ... and {len(result.failed) - 5} more")
    print("=" * 60)
    return 0


def show_status(session_id: str) -> int:
    """Show a session's status and document counts."""
    from scrapers.orchestrator import ScrapingOrchestrator

    app = create_app()

    with app.app_context():
        _init_db()
        status = ScrapingOrchestrator(db.session).get_session_status(session_id)
        if status is None:
            print(f"Session not found: {session_id}")
            return 1

        print("=" * 60)
        print(f"SESSION {session_id}")
        print("=" * 60)
        print(f"  Category:  {status['category']}")
        print(f"  Root URL:  {status['root_url']}")
        print(f"  Status:    {status['status']}")
        print(f"  Started:   {status['started_at']}")
        print(f"  Finished:  {status['finished_at'] or '-'}")
        print(f"  Documents: {status['total_documents']} "
              f"({status['parsed_documents']} parsed, {status['failed_documents']} failed)")
        if status.get('error_message'):
            print(f"  Error:     {status['error_message']}")
        print("=" * 60)
        return 0


def generate_entries(session_id: str) -> int:
    """Generate draft KB entries for a session."""
    from services.entry_generator import EntryGenerator
    from services.enrichment_client import get_enrichment_client
    from services.embedding_client import get_embedding_client
    from scrapers.exceptions import SessionNotFoundError

    app = create_app()

    with app.app_context():
        _init_db()
        generator = EntryGenerator(db.session, get_enrichment_client(), get_embedding_client())
        try:
            result = generator.generate_for_session(session_id)
        except SessionNotFoundError as e:
            print(str(e))
            return 1

        print("=" * 60)
        print("ENTRY GENERATION COMPLETE")
        print("=" * 60)
        print(f"Documents: {result.total_documents}")
        print(f"Created:   {result.created_count}")
        print(f"Skipped:   {result.skipped_count}")
        print(f"Errors:    {result.error_count}")
        for err in result.errors[:5]:
            print(f"  - {err['entry_id']}: {err['error']}")
        print("=" * 60)
        return 0


def main():
    parser = argparse.ArgumentParser(description="Scrape LawPhil legal documents")
    parser.add_argument("--operator", default="system", help="Recorded as the session operator")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("constitution", help="Scrape the 1987 Constitution")

    acts_year = subparsers.add_parser("acts-year", help="Scrape every Act of a year index page")
    acts_year.add_argument("url", help="Year page, e.g. .../act1930/act1930.html")

    url_cmd = subparsers.add_parser("url", help="Scrape a single page")
    url_cmd.add_argument("url")
    url_cmd.add_argument("--parser", default="constitution_1987",
                         choices=["constitution_1987", "acts"], help="Parser key")

    status_cmd = subparsers.add_parser("status", help="Show session status")
    status_cmd.add_argument("session_id")

    generate_cmd = subparsers.add_parser("generate", help="Generate draft KB entries for a session")
    generate_cmd.add_argument("session_id")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "constitution":
        return scrape_constitution(args.operator)
    if args.command == "acts-year":
        return scrape_acts_year(args.url, args.operator)
    if args.command == "url":
        return scrape_url(args.url, args.parser, args.operator)
    if args.command == "status":
        return show_status(args.session_id)
    return generate_entries(args.session_id)


if __name__ == "__main__":
    sys.exit(main())
