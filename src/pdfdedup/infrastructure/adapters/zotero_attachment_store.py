"""Attachment store adapter over the Zotero Web API and local storage."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from pdfdedup.application.ports.attachment_store_port import AttachmentStoreError
from pdfdedup.domain.attachment import AttachmentRecord, ParentRecord
from pdfdedup.infrastructure.connectors.zotero_connector import ZoteroConnector

logger = logging.getLogger(__name__)

LINKED_FILE_MODE = "linked_file"
LINKED_URL_MODE = "linked_url"


class ZoteroAttachmentStore:
    """
    AttachmentQueryPort + AttachmentTrashPort implementation.

    Item metadata comes from the Web API; file size and modification time
    come from the local Zotero storage directory (storage/<key>/<filename>)
    or, for linked files, from the absolute path recorded on the item.
    Blocking calls run in worker threads.
    """

    def __init__(
        self,
        *,
        api_key: str,
        library_type: str,
        library_id: str,
        storage_dir: str | Path,
        connector: Optional[ZoteroConnector] = None,
    ):
        self._connector = connector or ZoteroConnector()
        self._library = {
            "api_key": api_key,
            "library_type": library_type,
            "library_id": library_id,
        }
        self.storage_dir = Path(storage_dir).expanduser()
        self._versions: Dict[str, Optional[int]] = {}

    async def get_parent(self, parent_id: str) -> Optional[ParentRecord]:
        try:
            item = await asyncio.to_thread(
                self._connector.get_item, item_key=parent_id, **self._library
            )
        except requests.RequestException as e:
            raise AttachmentStoreError(f"Failed to fetch item {parent_id}: {e}", item_id=parent_id) from e
        if item is None:
            return None
        return self._to_parent(item)

    async def list_pdf_attachments(self, parent: ParentRecord) -> List[AttachmentRecord]:
        try:
            children = await asyncio.to_thread(
                self._connector.list_children, item_key=parent.id, **self._library
            )
        except requests.RequestException as e:
            raise AttachmentStoreError(
                f"Failed to list attachments of {parent.id}: {e}", item_id=parent.id
            ) from e

        records: List[AttachmentRecord] = []
        for child in children:
            if not ZoteroConnector.is_pdf_attachment(child):
                continue
            record = await asyncio.to_thread(self._to_attachment, child, parent.id)
            if record is not None:
                records.append(record)
        return records

    async def trash(self, attachment: AttachmentRecord) -> None:
        try:
            await asyncio.to_thread(
                self._connector.trash_item,
                item_key=attachment.id,
                version=self._versions.get(attachment.id),
                **self._library,
            )
        except requests.RequestException as e:
            raise AttachmentStoreError(
                f"Failed to trash attachment {attachment.id}: {e}", item_id=attachment.id
            ) from e

    def resolve_file_path(self, item: Dict[str, Any]) -> Optional[Path]:
        """Local path of an attachment's file, or None for web links."""
        data = item.get("data") or {}
        link_mode = str(data.get("linkMode") or "")
        if link_mode == LINKED_URL_MODE:
            return None
        if link_mode == LINKED_FILE_MODE:
            raw = str(data.get("path") or "")
            # Paths relative to the linked attachment base directory are not resolvable here
            if not raw or raw.startswith("attachments:"):
                return None
            return Path(raw).expanduser()
        filename = str(data.get("filename") or "")
        if not filename:
            return None
        return self.storage_dir / ZoteroConnector.item_key(item) / filename

    def _to_attachment(self, item: Dict[str, Any], parent_id: str) -> Optional[AttachmentRecord]:
        key = ZoteroConnector.item_key(item)
        data = item.get("data") or {}
        path = self.resolve_file_path(item)
        if path is None:
            logger.warning(f"Attachment {key} of {parent_id} has no local file; skipping")
            return None
        try:
            stat = path.stat()
        except OSError as e:
            logger.warning(f"Cannot stat {path} for attachment {key}: {e}")
            return None

        self._versions[key] = ZoteroConnector.item_version(item)
        return AttachmentRecord(
            id=key,
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            file_size=stat.st_size,
            last_modified=stat.st_mtime,
            parent_id=parent_id,
        )

    @staticmethod
    def _to_parent(item: Dict[str, Any]) -> ParentRecord:
        data = item.get("data") or {}
        return ParentRecord(
            id=ZoteroConnector.item_key(item),
            title=str(data.get("title") or ""),
            item_type=str(data.get("itemType") or ""),
            is_regular=ZoteroConnector.is_regular_item(item),
        )

    async def list_top_item_keys(self, *, max_items: int = 1000) -> List[str]:
        try:
            rows = await asyncio.to_thread(
                self._connector.list_all_top_items, max_items=max_items, **self._library
            )
        except requests.RequestException as e:
            raise AttachmentStoreError(f"Failed to list library items: {e}") from e
        return [ZoteroConnector.item_key(r) for r in rows if ZoteroConnector.item_key(r)]
