"""
Flask Application Factory - LawPhil scraping and KB entry pipeline

Serves the scraping control surface at /api/scraping:
- Sessions, URL processing and Acts year batches
- Draft KB entry generation and release
"""

from flask import Flask, jsonify
from flask_cors import CORS
import os
from config import Config
from models.database import db
from flask_migrate import Migrate

# Initialize Flask-Migrate (will be initialized in create_app)
migrate = Migrate()


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         methods=["GET", "POST", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
         expose_headers=["X-Request-ID"],
         supports_credentials=False,
         send_wildcard=True)

    # === API MIDDLEWARE ===
    # Request ID injection for request correlation and debugging
    from api.middleware import setup_request_id_middleware
    setup_request_id_middleware(app)

    # Access log for /api/scraping calls
    from api.middleware import setup_request_logging_middleware
    setup_request_logging_middleware(app)

    # Standard error envelope for HTTP and unhandled exceptions
    from api.middleware import setup_error_handlers
    setup_error_handlers(app)

    # Initialize SQLAlchemy
    db.init_app(app)

    # Initialize Flask-Migrate for database migrations
    migrate.init_app(app, db)

    with app.app_context():
        # Import all models before create_all to ensure tables are created
        from scrapers.models import ScrapingSession, ScrapedDocument  # noqa: F401
        from models.kb_entry import KBEntry  # noqa: F401

        env = (os.environ.get("ENV") or os.environ.get("FLASK_ENV") or os.environ.get("APP_ENV") or "").lower()
        is_prod = env in {"prod", "production"}
        allow_create = app.config.get("TESTING") or not is_prod
        if allow_create:
            db.create_all()
            if not app.config.get("TESTING"):
                print("✓ Database initialized")
        else:
            print("✓ Database ready (schema creation disabled in non-dev environments)")

    from routes.scraping import scraping_bp
    app.register_blueprint(scraping_bp, url_prefix='/api/scraping')

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"ok": True})

    return app


def run_app():
    """Main entry point for local development - starts server with Flask's dev server."""
    print("=" * 60)
    print("Starting Flask API - LawPhil scraping pipeline")
    print("=" * 60)

    app = create_app()

    with app.app_context():
        from scrapers.models import ScrapingSession
        from models.kb_entry import KBEntry

        sessions = db.session.query(ScrapingSession).count()
        drafts = db.session.query(KBEntry).filter(KBEntry.published_at.is_(None)).count()

        print(f"\n📊 Database Status:")
        print(f"   Scraping sessions: {sessions:,}")
        print(f"   Draft KB entries: {drafts:,}")

    print("=" * 60)
    app.run(debug=Config.DEBUG, host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))


if __name__ == "__main__":
    run_app()
