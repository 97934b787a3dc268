"""
Shared Flask-SQLAlchemy handle.

Models import `db` from here; the app factory and CLI scripts bind it
with `db.init_app(app)`.
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
