"""Adapters to object storage, the processing queue, the database and the REST service."""
