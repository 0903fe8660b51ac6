# src/pdfdedup/application/services/removal_executor.py
"""
Removal execution service.

Applies a RemovalPlan against the attachment store. Every deletion is
independent: a failure is logged and counted, and the next attachment is
still attempted.
"""

from __future__ import annotations

import logging
from typing import Optional

from pdfdedup.application.ports.attachment_store_port import AttachmentTrashPort
from pdfdedup.domain.attachment import ParentRecord, RemovalPlan, RemovalResult
from pdfdedup.utils.logging_config import LogFiles, Logger

logger = logging.getLogger(__name__)


class RemovalExecutor:
    """Sequentially trashes planned attachments; no retries."""

    def __init__(self, trash_port: AttachmentTrashPort):
        self._trash_port = trash_port

    async def execute(
        self,
        plan: RemovalPlan,
        parent: Optional[ParentRecord] = None,
    ) -> RemovalResult:
        """
        Trash every attachment in the plan.

        Args:
            plan: Removal plan for a single parent record
            parent: Owning record, used for log context only

        Returns:
            RemovalResult with removed/error counts
        """
        result = RemovalResult()
        parent_title = parent.title if parent else (plan.parent_id or "?")

        for attachment in plan:
            try:
                await self._trash_port.trash(attachment)
            except Exception as e:
                result.errors += 1
                Logger.error(
                    f"Failed to remove attachment {attachment.id} ({attachment.title}) "
                    f"of {parent_title}: {e}",
                    file=LogFiles.ERROR,
                )
                continue
            result.removed += 1
            Logger.info(
                f"Removed attachment {attachment.id} ({attachment.title}) of {parent_title}",
                file=LogFiles.DEDUP,
            )

        if result.errors:
            logger.warning(
                f"{result.errors} of {len(plan)} removals failed for {parent_title}"
            )
        return result
