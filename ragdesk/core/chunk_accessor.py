"""
Read-only access to the chunks of completed documents.

Chunks become readable only once a document's run completed; after that the
set never changes, so it is fetched once and cached per document id.
Filtering and search run locally over the cached set.

Dependencies: ragdesk.core.interfaces, ragdesk.models.chunk
System role: Chunk inspection for completed documents
"""

import logging
import uuid
from collections import Counter
from collections.abc import Iterable, Iterator

from ragdesk.core.exceptions import NotReady
from ragdesk.core.interfaces import ChunkSource, DocumentStatusSource
from ragdesk.core.pipeline import ProcessingStatus
from ragdesk.models.chunk import Chunk, ChunkType, ChunkTypeFilter

logger = logging.getLogger(__name__)


def filter_chunks(
    chunks: Iterable[Chunk],
    chunk_type: ChunkTypeFilter | str = ChunkTypeFilter.ALL,
    search: str = "",
) -> list[Chunk]:
    """
    Type filter AND case-insensitive substring search, order preserving.

    Args:
        chunks: Chunks to filter
        chunk_type: "all" or a chunk type
        search: Substring to look for in content; empty matches everything
    """
    chunk_type = ChunkTypeFilter(chunk_type)
    needle = search.casefold()
    return [
        chunk
        for chunk in chunks
        if (chunk_type is ChunkTypeFilter.ALL or chunk.type.value == chunk_type.value)
        and needle in chunk.content.casefold()
    ]


class ChunkSet:
    """Immutable chunk collection of one completed document."""

    def __init__(self, document_id: uuid.UUID, chunks: Iterable[Chunk]) -> None:
        self.document_id = document_id
        self._chunks = tuple(sorted(chunks, key=lambda chunk: chunk.index))
        self._by_id = {chunk.id: chunk for chunk in self._chunks}

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._chunks)

    def filter(
        self,
        chunk_type: ChunkTypeFilter | str = ChunkTypeFilter.ALL,
        search: str = "",
    ) -> list[Chunk]:
        return filter_chunks(self._chunks, chunk_type, search)

    def select(self, chunk_id: str) -> Chunk | None:
        return self._by_id.get(chunk_id)

    def counts(self) -> dict[ChunkType, int]:
        """Number of chunks per type, every type present."""
        counter = Counter(chunk.type for chunk in self._chunks)
        return {chunk_type: counter.get(chunk_type, 0) for chunk_type in ChunkType}


class ChunkStoreAccessor:
    """Gated chunk listing for one project."""

    def __init__(
        self,
        project_id: uuid.UUID,
        chunk_source: ChunkSource,
        status_source: DocumentStatusSource,
    ) -> None:
        self.project_id = project_id
        self.chunk_source = chunk_source
        self.status_source = status_source
        self._cache: dict[uuid.UUID, ChunkSet] = {}

    async def list_chunks(self, document_id: uuid.UUID) -> ChunkSet:
        """
        Chunks of a completed document.

        Raises:
            NotReady: Document run has not completed
        """
        cached = self._cache.get(document_id)
        if cached is not None:
            return cached

        document = await self.status_source.get_document(self.project_id, document_id)
        if document.processing_status is not ProcessingStatus.COMPLETED:
            raise NotReady(str(document_id), document.processing_status.value)

        chunks = await self.chunk_source.list_chunks(self.project_id, document_id)
        chunk_set = ChunkSet(document_id, chunks)
        self._cache[document_id] = chunk_set
        logger.debug(
            "Chunks loaded",
            extra={"document_id": str(document_id), "chunk_count": len(chunk_set)},
        )
        return chunk_set

    def invalidate(self, document_id: uuid.UUID) -> None:
        """Forget a cached set, e.g. after the document was deleted."""
        self._cache.pop(document_id, None)
