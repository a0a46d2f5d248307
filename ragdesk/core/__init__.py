"""Client-side ingestion core: coordination, stage tracking, chunk access, cost preview."""
