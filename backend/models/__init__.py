"""
Models package - SQLAlchemy models
"""
from models.database import db
from models.kb_entry import KBEntry

__all__ = [
    'db',
    'KBEntry',
]
