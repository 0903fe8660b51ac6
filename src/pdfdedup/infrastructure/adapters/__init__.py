"""Attachment store adapters."""

from __future__ import annotations

from pdfdedup.infrastructure.adapters.zotero_attachment_store import ZoteroAttachmentStore

__all__ = ["ZoteroAttachmentStore"]
