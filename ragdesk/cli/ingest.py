"""Command line client for a ragdesk knowledge base.

Usage::

    python -m ragdesk.cli ingest --project <uuid> report.pdf notes.md

    python -m ragdesk.cli chunks --project <uuid> --document <uuid> \\
        --type text --search "revenue"

    python -m ragdesk.cli estimate --strategy multi-query-hybrid \\
        --chunks 20 --queries 5 --reranking

``ingest`` validates every file locally, uploads them concurrently, then
watches each confirmed document until it completes or fails. The service
location and principal come from the ``INGESTION_*`` settings.
"""

import argparse
import asyncio
import sys
import uuid
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from ragdesk.boundary.http.api_client import KnowledgeBaseApiClient
from ragdesk.configs import get_settings
from ragdesk.core.chunk_accessor import ChunkStoreAccessor
from ragdesk.core.document_registry import DocumentRegistry
from ragdesk.core.exceptions import RagdeskError
from ragdesk.core.pipeline import ProcessingStatus
from ragdesk.core.retrieval import estimate_performance
from ragdesk.core.status_poller import DocumentStatusPoller
from ragdesk.core.upload_coordinator import UploadCoordinator, UploadOutcome
from ragdesk.core.upload_policy import UploadPolicy
from ragdesk.models.chunk import ChunkTypeFilter
from ragdesk.models.document import DocumentDetail, UploadFile, format_file_size
from ragdesk.models.settings import RagStrategy, RetrievalSettings
from ragdesk.observability import configure_logging


def _print_outcome(outcome: UploadOutcome) -> None:
    if outcome.succeeded:
        document = outcome.document
        print(f"  [queued] {outcome.filename} ({format_file_size(document.file_size)}) id={document.id}")
        return
    error = outcome.error
    step = getattr(error, "step", "validation")
    print(f"  [failed] {outcome.filename} at {step}: {error.message}")
    cleanup = getattr(error, "cleanup_error", None)
    if cleanup is not None:
        print(f"           cleanup also failed: {cleanup.message}")


def _print_progress(detail: DocumentDetail) -> None:
    print(
        f"  {detail.original_filename}: {detail.processing_status.value} "
        f"({detail.progress_percentage}%)"
    )


async def _handle_ingest(args: argparse.Namespace) -> int:
    settings = get_settings().ingestion
    project_id = args.project
    files = [UploadFile.from_path(path) for path in args.files]

    registry = DocumentRegistry()
    async with KnowledgeBaseApiClient.from_settings(settings) as client:
        coordinator = UploadCoordinator(
            project_id,
            registration=client,
            transfer=client,
            registry=registry,
            policy=UploadPolicy(max_bytes=settings.max_upload_bytes),
        )
        print(f"Uploading {len(files)} file(s) to project {project_id}")
        outcomes = await coordinator.ingest_many(files)
        for outcome in outcomes:
            _print_outcome(outcome)

        if args.no_wait or not registry.non_terminal_ids():
            return 0 if all(o.succeeded for o in outcomes) else 1

        print("Waiting for processing...")
        poller = DocumentStatusPoller(
            project_id,
            status_source=client,
            registry=registry,
            interval_seconds=settings.poll_interval_seconds,
            on_update=_print_progress if args.verbose else None,
        )
        subscriptions = poller.watch_pending()
        try:
            results = await asyncio.gather(*(s.wait() for s in subscriptions), return_exceptions=True)
        finally:
            await poller.close()

    failed = sum(1 for o in outcomes if not o.succeeded)
    for result in results:
        if isinstance(result, BaseException):
            print(f"  [error] status tracking stopped: {result}")
            failed += 1
        elif result is not None:
            print(f"  [{result.processing_status.value}] {result.original_filename}")
            if result.error_message:
                print(f"           {result.error_message}")
            if result.processing_status is ProcessingStatus.FAILED:
                failed += 1
    return 0 if failed == 0 else 1


async def _handle_chunks(args: argparse.Namespace) -> int:
    settings = get_settings().ingestion
    async with KnowledgeBaseApiClient.from_settings(settings) as client:
        accessor = ChunkStoreAccessor(args.project, chunk_source=client, status_source=client)
        chunk_set = await accessor.list_chunks(args.document)

    counts = chunk_set.counts()
    print(
        f"{len(chunk_set)} chunk(s): "
        + ", ".join(f"{chunk_type.value}={count}" for chunk_type, count in counts.items())
    )
    for chunk in chunk_set.filter(args.type, args.search):
        preview = chunk.content[:80].replace("\n", " ")
        print(f"  #{chunk.index} p{chunk.page} [{chunk.type.value}] {preview}")
    return 0


def _handle_estimate(args: argparse.Namespace) -> int:
    config = RetrievalSettings(
        rag_strategy=args.strategy,
        chunks_per_search=args.chunks,
        number_of_queries=args.queries,
        reranking_enabled=args.reranking,
    )
    estimate = estimate_performance(config)
    print(f"Strategy tier:    {estimate.strategy_tier.value}")
    print(f"Chunks retrieved: {estimate.total_chunks}")
    print(f"After dedupe:     {estimate.after_dedupe}")
    print(f"Latency estimate: {estimate.estimated_latency_ms} ms")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ragdesk CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m ragdesk.cli",
        description="Upload documents to a ragdesk project and inspect the results.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress updates")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser("ingest", help="Upload files and wait for processing")
    ingest_parser.add_argument("--project", type=uuid.UUID, required=True, help="Project id")
    ingest_parser.add_argument("--no-wait", action="store_true", help="Exit once uploads are confirmed")
    ingest_parser.add_argument("files", nargs="+", type=Path, help="Files to upload")

    chunks_parser = subparsers.add_parser("chunks", help="List chunks of a completed document")
    chunks_parser.add_argument("--project", type=uuid.UUID, required=True)
    chunks_parser.add_argument("--document", type=uuid.UUID, required=True)
    chunks_parser.add_argument(
        "--type",
        choices=[f.value for f in ChunkTypeFilter],
        default=ChunkTypeFilter.ALL.value,
    )
    chunks_parser.add_argument("--search", default="", help="Case-insensitive content filter")

    estimate_parser = subparsers.add_parser("estimate", help="Estimate retrieval cost locally")
    estimate_parser.add_argument(
        "--strategy",
        choices=[s.value for s in RagStrategy],
        default=RagStrategy.BASIC.value,
    )
    estimate_parser.add_argument("--chunks", type=int, default=20, help="Chunks per search (5-50)")
    estimate_parser.add_argument("--queries", type=int, default=5, help="Number of queries (3-7)")
    estimate_parser.add_argument("--reranking", action="store_true")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else get_settings().effective_log_level)

    missing = [str(path) for path in getattr(args, "files", []) if not path.is_file()]
    if missing:
        parser.error(f"file(s) not found: {', '.join(missing)}")

    try:
        if args.command == "ingest":
            exit_code = asyncio.run(_handle_ingest(args))
        elif args.command == "chunks":
            exit_code = asyncio.run(_handle_chunks(args))
        else:
            exit_code = _handle_estimate(args)
    except PydanticValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        exit_code = 2
    except RagdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
