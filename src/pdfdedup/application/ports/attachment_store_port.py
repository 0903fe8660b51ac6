# src/pdfdedup/application/ports/attachment_store_port.py
"""
Attachment store port interfaces.

The deduplication engine reads parent records and their PDF attachments
through AttachmentQueryPort and removes attachments through
AttachmentTrashPort. Both are injected, so the engine runs unchanged
against the Zotero adapter or an in-memory fake.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from pdfdedup.domain.attachment import AttachmentRecord, ParentRecord


class AttachmentStoreError(Exception):
    """A store-level failure affecting a single record or attachment."""

    def __init__(self, message: str, *, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id


@runtime_checkable
class AttachmentQueryPort(Protocol):
    """Read-only view of parent records and their attachments."""

    async def get_parent(self, parent_id: str) -> Optional[ParentRecord]:
        """Return the parent record, or None when it does not exist."""
        ...

    async def list_pdf_attachments(self, parent: ParentRecord) -> List[AttachmentRecord]:
        """
        Return the PDF attachments of a parent record.

        File size and modification time must already be resolved on every
        returned record; the tier and source hint are left at defaults.
        """
        ...


@runtime_checkable
class AttachmentTrashPort(Protocol):
    """Removal surface of the attachment store."""

    async def trash(self, attachment: AttachmentRecord) -> None:
        """
        Move an attachment to the trash.

        Raises:
            AttachmentStoreError: when the store rejects the operation
        """
        ...
