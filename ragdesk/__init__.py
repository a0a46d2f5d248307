"""
ragdesk: document ingestion pipeline and retrieval configuration engine.

Client-side ingestion core (upload coordination, stage tracking, chunk inspection,
retrieval cost preview) plus the REST service implementing its boundary contracts.
"""

__version__ = "0.1.0"
