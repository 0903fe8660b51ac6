# src/pdfdedup/application/workflows/dedup_pipeline.py
"""
Attachment Deduplication Pipeline.

Processes parent records one at a time: load PDF attachments, plan the
removals, execute them, and aggregate the counters of the whole run.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Iterable, Optional, Tuple

from pdfdedup.application.ports.attachment_store_port import (
    AttachmentQueryPort,
    AttachmentTrashPort,
)
from pdfdedup.application.services import RemovalExecutor, RemovalPlanner
from pdfdedup.domain.attachment import (
    DedupRunSummary,
    ParentRecord,
    RemovalPlan,
    RemovalResult,
)
from pdfdedup.utils.logging_config import LogFiles, Logger, clear_trace_id, set_trace_id

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DedupProgress:
    """Progress update after one parent record."""

    parent_id: str
    message: str
    skipped: bool = False
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ItemOutcome:
    """Plan and execution result for one parent record."""

    parent_id: str
    plan: RemovalPlan
    result: RemovalResult
    skip_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None


class DedupPipeline:
    """
    Sequential deduplication over many parent records.

    Orchestrates, per parent record:
    1. Skip checks (not a regular record, webpage, fewer than two PDFs)
    2. Removal planning (RemovalPlanner)
    3. Removal execution (RemovalExecutor), unless dry_run is set
    """

    def __init__(
        self,
        query_port: AttachmentQueryPort,
        trash_port: AttachmentTrashPort,
        *,
        planner: Optional[RemovalPlanner] = None,
        dry_run: bool = False,
    ):
        self.query_port = query_port
        self.planner = planner or RemovalPlanner()
        self.executor = RemovalExecutor(trash_port)
        self.dry_run = dry_run

    @staticmethod
    def new_run_id() -> str:
        timestamp = _utcnow().strftime("%Y%m%d-%H%M%S")
        return f"dedup-{timestamp}-{uuid.uuid4().hex[:8]}"

    @staticmethod
    def skip_reason(parent: Optional[ParentRecord]) -> Optional[str]:
        if parent is None:
            return "not found"
        if not parent.is_regular:
            return "not a regular item"
        if parent.is_webpage:
            return "webpage item"
        return None

    async def process_item(self, parent_id: str) -> ItemOutcome:
        """Plan and (unless dry run) execute removals for one parent record."""
        empty = RemovalPlan(parent_id=parent_id)
        parent = await self.query_port.get_parent(parent_id)
        reason = self.skip_reason(parent)
        if reason:
            return ItemOutcome(parent_id, empty, RemovalResult(), skip_reason=reason)

        attachments = await self.query_port.list_pdf_attachments(parent)
        if len(attachments) < 2:
            return ItemOutcome(parent_id, empty, RemovalResult(), skip_reason="fewer than two PDFs")

        plan = self.planner.plan(attachments, parent_id=parent_id)
        if plan:
            Logger.info(
                f"{parent.title}: removing {plan.ids}, keeping {[k.id for k in plan.kept]}",
                file=LogFiles.DEDUP,
            )
        if self.dry_run or not plan:
            return ItemOutcome(parent_id, plan, RemovalResult())

        result = await self.executor.execute(plan, parent)
        return ItemOutcome(parent_id, plan, result)

    async def run(
        self,
        parent_ids: Iterable[str],
        *,
        run_id: Optional[str] = None,
    ) -> AsyncGenerator[DedupProgress | DedupRunSummary, None]:
        """
        Execute the pipeline with progress updates.

        Yields:
            DedupProgress after every parent record
            DedupRunSummary as final yield
        """
        run_id = run_id or self.new_run_id()
        set_trace_id(run_id)
        start_time = _utcnow()
        summary = DedupRunSummary(run_id=run_id, dry_run=self.dry_run)

        try:
            for parent_id in parent_ids:
                outcome, error = await self._process_isolated(parent_id)
                summary.items_processed += 1

                if error is not None:
                    summary.total_errors += 1
                    yield DedupProgress(parent_id, f"Failed: {error}", details={"error": error})
                    continue

                summary.total_planned += len(outcome.plan)
                summary.total_removed += outcome.result.removed
                summary.total_errors += outcome.result.errors
                if outcome.plan:
                    summary.plans.append(outcome.plan)

                if outcome.skipped:
                    yield DedupProgress(
                        parent_id, f"Skipped: {outcome.skip_reason}", skipped=True
                    )
                else:
                    yield DedupProgress(
                        parent_id,
                        f"Planned {len(outcome.plan)}, removed {outcome.result.removed}, "
                        f"errors {outcome.result.errors}",
                        details={
                            "planned": len(outcome.plan),
                            "removed": outcome.result.removed,
                            "errors": outcome.result.errors,
                        },
                    )

            summary.duration_seconds = (_utcnow() - start_time).total_seconds()
            Logger.info(
                f"Run finished: {summary.items_processed} items, "
                f"{summary.total_planned} planned, {summary.total_removed} removed, "
                f"{summary.total_errors} errors",
                file=LogFiles.DEDUP,
            )
            yield summary
        finally:
            clear_trace_id()

    async def _process_isolated(
        self, parent_id: str
    ) -> Tuple[Optional[ItemOutcome], Optional[str]]:
        """Run process_item, turning an unexpected failure into an item-level error."""
        try:
            return await self.process_item(parent_id), None
        except Exception as e:
            logger.exception(f"Deduplication failed for item {parent_id}")
            Logger.error(f"Deduplication failed for item {parent_id}: {e}", file=LogFiles.ERROR)
            return None, str(e)

    async def run_sync(
        self,
        parent_ids: Iterable[str],
        *,
        run_id: Optional[str] = None,
    ) -> DedupRunSummary:
        """Execute the pipeline and return only the final summary."""
        result: Optional[DedupRunSummary] = None
        async for item in self.run(parent_ids, run_id=run_id):
            if isinstance(item, DedupRunSummary):
                result = item

        if result is None:
            raise RuntimeError("Pipeline completed without final summary")
        return result
