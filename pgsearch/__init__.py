"""Declarative PostgreSQL full-text and trigram search scopes for SQLAlchemy."""

__version__ = "0.1.0"
