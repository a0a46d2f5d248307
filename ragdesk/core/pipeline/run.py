"""
Pipeline run state machine.

Holds the single current-stage pointer of one document's ingestion run and
records stage transitions and progress reported by the processing worker.
The engine never performs analysis or embedding work itself.

Transitions:
    advance()        current stage completed, next stage processing
    advance_to(s)    strict advance; s must be the next stage
    sync_to(s)       catch-up for observers that sample state by polling
    fail(msg)        current stage failed, later stages pending forever

Dependencies: ragdesk.core.pipeline.stages, ragdesk.core.exceptions
System role: Stage ordering and inspection gating for ingestion runs
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from ragdesk.core.exceptions import StageOrderViolation
from ragdesk.core.pipeline.stages import STAGE_ORDER, ProcessingStatus, StageStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class StageRecord:
    """Status, progress and timing of one stage within a run."""

    stage: ProcessingStatus
    status: StageStatus = StageStatus.PENDING
    progress: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "stage": self.stage.value,
            "status": self.status.value,
            "progress": self.progress,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StageRecord":
        """Rebuild a record from its serialized form."""
        return cls(
            stage=ProcessingStatus(data["stage"]),
            status=StageStatus(data.get("status", StageStatus.PENDING.value)),
            progress=int(data.get("progress", 0)),
            started_at=_parse_timestamp(data.get("started_at")),
            completed_at=_parse_timestamp(data.get("completed_at")),
        )


class PipelineRun:
    """
    Ordered execution of processing stages for one document.

    A new run starts with its first stage processing. Stages complete strictly
    in declared order and at most one stage is processing at a time. Every
    operation on a terminal run raises StageOrderViolation.
    """

    def __init__(
        self,
        stages: Sequence[ProcessingStatus] = STAGE_ORDER,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize a run with its first stage processing.

        Args:
            stages: Ordered non-terminal stages (defaults to the full pipeline)
            clock: Timestamp source, injectable for tests

        Raises:
            ValueError: Empty stage list or terminal status in stage list
        """
        if not stages:
            raise ValueError("A pipeline run needs at least one stage")
        if any(stage.is_terminal for stage in stages):
            raise ValueError("Terminal statuses cannot be pipeline stages")
        if len(set(stages)) != len(stages):
            raise ValueError("Pipeline stages must be unique")

        self._clock = clock
        self._records = [StageRecord(stage=stage) for stage in stages]
        self._index: int | None = 0
        self._outcome: ProcessingStatus | None = None
        self.error_message: str | None = None
        self._start(0)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def stages(self) -> tuple[StageRecord, ...]:
        """Copies of the stage records in processing order."""
        return tuple(replace(record) for record in self._records)

    @property
    def stage_order(self) -> tuple[ProcessingStatus, ...]:
        return tuple(record.stage for record in self._records)

    @property
    def current_index(self) -> int | None:
        """Index of the processing (or failed) stage; None once completed."""
        return self._index

    @property
    def current_stage(self) -> ProcessingStatus:
        """Stage the pointer rests on, or COMPLETED."""
        if self._index is None:
            return ProcessingStatus.COMPLETED
        return self._records[self._index].stage

    @property
    def status(self) -> ProcessingStatus:
        """Document-level status: the current stage, or the terminal outcome."""
        return self._outcome or self.current_stage

    @property
    def is_terminal(self) -> bool:
        return self._outcome is not None

    @property
    def results_enabled(self) -> bool:
        """Chunk listing is available only after the run completed."""
        return self._outcome is ProcessingStatus.COMPLETED

    @property
    def progress_percentage(self) -> int:
        """
        Document-level progress, 0-100.

        Completed stages count fully, the current stage by its own progress.
        Capped at 99 until the run completes; frozen on failure.
        """
        if self._outcome is ProcessingStatus.COMPLETED:
            return 100
        done = sum(1 for record in self._records if record.status is StageStatus.COMPLETED)
        current = self._records[self._index].progress if self._index is not None else 0
        return min(99, (done * 100 + current) // len(self._records))

    def stage_status(self, stage: ProcessingStatus) -> StageStatus:
        """
        Status of one stage.

        Raises:
            KeyError: Stage is not part of this run
        """
        return self._record_for(ProcessingStatus(stage)).status

    def is_stage_enabled(self, stage: ProcessingStatus) -> bool:
        """A stage is inspectable once reached: processing or completed."""
        return self.stage_status(stage) in (StageStatus.PROCESSING, StageStatus.COMPLETED)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def advance(self) -> ProcessingStatus:
        """
        Complete the current stage and start the next one.

        Advancing past the last stage completes the run.

        Returns:
            ProcessingStatus: Status after the transition

        Raises:
            StageOrderViolation: Run is terminal
        """
        index = self._require_active()
        record = self._records[index]
        record.status = StageStatus.COMPLETED
        record.progress = 100
        record.completed_at = self._clock()

        if index + 1 < len(self._records):
            self._start(index + 1)
        else:
            self._index = None
            self._outcome = ProcessingStatus.COMPLETED
        return self.status

    def advance_to(self, stage: ProcessingStatus) -> ProcessingStatus:
        """
        Strictly advance to the given stage, which must be the next one.

        Args:
            stage: Next stage, or COMPLETED when the current stage is the last

        Raises:
            StageOrderViolation: Skipping, revisiting, or run terminal
        """
        stage = ProcessingStatus(stage)
        index = self._require_active()
        expected = (
            self._records[index + 1].stage
            if index + 1 < len(self._records)
            else ProcessingStatus.COMPLETED
        )
        if stage is not expected:
            raise StageOrderViolation(
                f"Cannot move from '{self.current_stage.value}' to '{stage.value}'",
                {"current": self.current_stage.value, "expected": expected.value},
            )
        return self.advance()

    def complete(self) -> ProcessingStatus:
        """Finish the last stage and mark the run completed."""
        return self.advance_to(ProcessingStatus.COMPLETED)

    def report_progress(self, stage: ProcessingStatus, percent: int) -> None:
        """
        Record progress within the current stage.

        Args:
            stage: Must be the current processing stage
            percent: 0-100, non-decreasing within the stage

        Raises:
            StageOrderViolation: Wrong stage, out-of-range or regressing percent
        """
        stage = ProcessingStatus(stage)
        index = self._require_active()
        record = self._records[index]
        if stage is not record.stage:
            raise StageOrderViolation(
                f"Progress reported for '{stage.value}' while '{record.stage.value}' is current",
                {"current": record.stage.value, "reported": stage.value},
            )
        if not 0 <= percent <= 100:
            raise StageOrderViolation(
                f"Progress {percent} outside 0-100",
                {"stage": stage.value, "percent": percent},
            )
        if percent < record.progress:
            raise StageOrderViolation(
                f"Progress for '{stage.value}' regressed from {record.progress} to {percent}",
                {"stage": stage.value, "previous": record.progress, "percent": percent},
            )
        record.progress = percent

    def fail(self, error_message: str | None = None) -> ProcessingStatus:
        """
        Fail the current stage; all later stages stay pending.

        Raises:
            StageOrderViolation: Run already terminal
        """
        index = self._require_active()
        record = self._records[index]
        record.status = StageStatus.FAILED
        record.completed_at = self._clock()
        self._outcome = ProcessingStatus.FAILED
        self.error_message = error_message
        return self.status

    def sync_to(
        self,
        status: ProcessingStatus,
        stage_progress: int | None = None,
        error_message: str | None = None,
        failed_stage: ProcessingStatus | None = None,
    ) -> ProcessingStatus:
        """
        Bring the run up to an externally observed status.

        Polling observers may miss intermediate stages; those are replayed in
        order so every earlier stage ends up completed. Repeating the current
        status (including a terminal one) is a no-op.

        Args:
            status: Observed document status
            stage_progress: Observed progress of that stage, if known
            error_message: Failure reason when status is FAILED
            failed_stage: Stage the observed run failed at; stages before it
                are replayed first. Defaults to the current stage.

        Raises:
            StageOrderViolation: Observed status lies behind the run, or
                contradicts a terminal outcome
        """
        status = ProcessingStatus(status)
        if self.is_terminal:
            if status is self.status:
                return self.status
            raise StageOrderViolation(
                f"Run already '{self.status.value}', cannot move to '{status.value}'",
                {"status": self.status.value, "observed": status.value},
            )

        if status is ProcessingStatus.FAILED:
            if failed_stage is not None:
                self._replay_to(ProcessingStatus(failed_stage))
            return self.fail(error_message)

        self._replay_to(status)

        if stage_progress is not None and not self.is_terminal:
            self.report_progress(self.current_stage, stage_progress)
        return self.status

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_snapshot(self) -> dict[str, Any]:
        """Serialize the run for JSON storage."""
        return {
            "stages": [record.to_dict() for record in self._records],
            "current_index": self._index,
            "outcome": self._outcome.value if self._outcome else None,
            "error_message": self.error_message,
        }

    @classmethod
    def from_snapshot(
        cls,
        snapshot: dict[str, Any],
        clock: Callable[[], datetime] = _utcnow,
    ) -> "PipelineRun":
        """
        Rebuild a run from ``to_snapshot`` output.

        Raises:
            StageOrderViolation: Snapshot breaks the ordering invariants
        """
        records = [StageRecord.from_dict(item) for item in snapshot.get("stages", [])]
        if not records:
            raise StageOrderViolation("Snapshot has no stages")

        run = cls.__new__(cls)
        run._clock = clock
        run._records = records
        run._index = snapshot.get("current_index")
        outcome = snapshot.get("outcome")
        run._outcome = ProcessingStatus(outcome) if outcome else None
        run.error_message = snapshot.get("error_message")
        run.check_invariants()
        return run

    @classmethod
    def for_status(
        cls,
        status: ProcessingStatus,
        error_message: str | None = None,
    ) -> "PipelineRun":
        """Build a fresh run already synced to an observed status."""
        run = cls()
        run.sync_to(status, error_message=error_message)
        return run

    def check_invariants(self) -> None:
        """
        Verify stage ordering.

        Completed stages form a prefix; at most one stage is processing or
        failed and it sits on the current index; everything after is pending.

        Raises:
            StageOrderViolation: Any invariant breach
        """
        statuses = [record.status for record in self._records]
        prefix = 0
        while prefix < len(statuses) and statuses[prefix] is StageStatus.COMPLETED:
            prefix += 1

        if self._outcome is ProcessingStatus.COMPLETED:
            if prefix != len(statuses) or self._index is not None:
                raise StageOrderViolation("Completed run has unfinished stages")
            return

        if self._index != prefix or prefix >= len(statuses):
            raise StageOrderViolation(
                "Current stage does not follow the completed prefix",
                {"current_index": self._index, "completed_prefix": prefix},
            )

        expected = (
            StageStatus.FAILED
            if self._outcome is ProcessingStatus.FAILED
            else StageStatus.PROCESSING
        )
        if statuses[prefix] is not expected:
            raise StageOrderViolation(
                f"Current stage is '{statuses[prefix].value}', expected '{expected.value}'",
                {"current_index": prefix},
            )
        if any(status is not StageStatus.PENDING for status in statuses[prefix + 1:]):
            raise StageOrderViolation(
                "Stages after the current one must be pending",
                {"current_index": prefix},
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _replay_to(self, status: ProcessingStatus) -> None:
        order = self.stage_order
        if status is ProcessingStatus.COMPLETED:
            target = len(order)
        elif status in order:
            target = order.index(status)
        else:
            raise StageOrderViolation(
                f"Stage '{status.value}' is not part of this run",
                {"observed": status.value},
            )

        if target < self._index:
            raise StageOrderViolation(
                f"Observed '{status.value}' is behind current '{self.current_stage.value}'",
                {"current": self.current_stage.value, "observed": status.value},
            )

        while self._index is not None and self._index < target:
            self.advance()

    def _start(self, index: int) -> None:
        record = self._records[index]
        record.status = StageStatus.PROCESSING
        record.progress = 0
        record.started_at = self._clock()
        self._index = index

    def _require_active(self) -> int:
        if self._outcome is not None or self._index is None:
            raise StageOrderViolation(
                f"Run already '{self.status.value}'",
                {"status": self.status.value},
            )
        return self._index

    def _record_for(self, stage: ProcessingStatus) -> StageRecord:
        for record in self._records:
            if record.stage is stage:
                return record
        raise KeyError(stage)
