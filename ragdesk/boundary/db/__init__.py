"""Async SQLAlchemy persistence for documents, chunks and project settings."""
