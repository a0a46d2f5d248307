"""FastAPI application exposing documents, pipeline stages and retrieval settings."""
