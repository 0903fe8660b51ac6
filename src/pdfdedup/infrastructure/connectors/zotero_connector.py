from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

NON_REGULAR_ITEM_TYPES = frozenset({"note", "attachment", "annotation"})
PDF_CONTENT_TYPE = "application/pdf"


class ZoteroConnector:
    """Thin wrapper around the Zotero Web API for attachment maintenance."""

    def __init__(self, *, timeout_s: float = 30.0, base_url: str = "https://api.zotero.org"):
        self.timeout_s = timeout_s
        self.base_url = base_url.rstrip("/")
        self._user_agent = "pdfdedup/0.1"

    def list_top_items(
        self,
        *,
        api_key: str,
        library_type: str,
        library_id: str,
        limit: int = 100,
        start: int = 0,
    ) -> List[Dict[str, Any]]:
        url = f"{self.base_url}{self._library_path(library_type, library_id)}/items/top"
        response = requests.get(
            url,
            headers=self._headers(api_key),
            params={
                "format": "json",
                "limit": max(1, min(int(limit), 100)),
                "start": max(0, int(start)),
            },
            timeout=self.timeout_s,
        )
        response.raise_for_status()
        payload = response.json()
        return payload if isinstance(payload, list) else []

    def list_all_top_items(
        self,
        *,
        api_key: str,
        library_type: str,
        library_id: str,
        max_items: int = 1000,
    ) -> List[Dict[str, Any]]:
        remaining = max(1, int(max_items))
        offset = 0
        rows: List[Dict[str, Any]] = []
        while remaining > 0:
            batch_size = min(remaining, 100)
            page = self.list_top_items(
                api_key=api_key,
                library_type=library_type,
                library_id=library_id,
                limit=batch_size,
                start=offset,
            )
            if not page:
                break
            rows.extend(page)
            if len(page) < batch_size:
                break
            remaining -= len(page)
            offset += len(page)
        return rows

    def get_item(
        self,
        *,
        api_key: str,
        library_type: str,
        library_id: str,
        item_key: str,
    ) -> Optional[Dict[str, Any]]:
        """Fetch one item; returns None when the library has no such key."""
        url = f"{self.base_url}{self._library_path(library_type, library_id)}/items/{item_key}"
        response = requests.get(
            url,
            headers=self._headers(api_key),
            params={"format": "json"},
            timeout=self.timeout_s,
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        payload = response.json()
        return payload if isinstance(payload, dict) else None

    def list_children(
        self,
        *,
        api_key: str,
        library_type: str,
        library_id: str,
        item_key: str,
    ) -> List[Dict[str, Any]]:
        """All child items of one item; the API pages at 100 results at most."""
        url = (
            f"{self.base_url}{self._library_path(library_type, library_id)}"
            f"/items/{item_key}/children"
        )
        page_size = 100
        offset = 0
        rows: List[Dict[str, Any]] = []
        while True:
            response = requests.get(
                url,
                headers=self._headers(api_key),
                params={"format": "json", "limit": page_size, "start": offset},
                timeout=self.timeout_s,
            )
            response.raise_for_status()
            payload = response.json()
            page = payload if isinstance(payload, list) else []
            rows.extend(page)
            if len(page) < page_size:
                break
            offset += len(page)
        return rows

    def trash_item(
        self,
        *,
        api_key: str,
        library_type: str,
        library_id: str,
        item_key: str,
        version: Optional[int] = None,
    ) -> None:
        """Move an item to the library trash (recoverable, unlike DELETE)."""
        url = f"{self.base_url}{self._library_path(library_type, library_id)}/items/{item_key}"
        headers = self._headers(api_key, include_json=True)
        if version is not None:
            headers["If-Unmodified-Since-Version"] = str(version)
        response = requests.patch(
            url,
            headers=headers,
            json={"deleted": 1},
            timeout=self.timeout_s,
        )
        response.raise_for_status()

    @staticmethod
    def is_regular_item(item: Dict[str, Any]) -> bool:
        record = ZoteroConnector._data(item)
        item_type = str(record.get("itemType") or "").strip()
        return bool(item_type) and item_type not in NON_REGULAR_ITEM_TYPES

    @staticmethod
    def is_pdf_attachment(item: Dict[str, Any]) -> bool:
        record = ZoteroConnector._data(item)
        return (
            record.get("itemType") == "attachment"
            and str(record.get("contentType") or "").lower() == PDF_CONTENT_TYPE
        )

    @staticmethod
    def item_key(item: Dict[str, Any]) -> str:
        return str((item or {}).get("key") or ZoteroConnector._data(item).get("key") or "")

    @staticmethod
    def item_version(item: Dict[str, Any]) -> Optional[int]:
        raw = (item or {}).get("version", ZoteroConnector._data(item).get("version"))
        try:
            return int(raw) if raw is not None else None
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _data(item: Dict[str, Any]) -> Dict[str, Any]:
        record = (item or {}).get("data") if isinstance(item, dict) else {}
        return record if isinstance(record, dict) else {}

    def _library_path(self, library_type: str, library_id: str) -> str:
        bucket = str(library_type or "").strip().lower()
        if bucket not in {"user", "group"}:
            raise ValueError("library_type must be 'user' or 'group'")
        external_id = str(library_id or "").strip()
        if not external_id:
            raise ValueError("library_id is required")
        return f"/{bucket}s/{external_id}"

    def _headers(self, api_key: str, *, include_json: bool = False) -> Dict[str, str]:
        headers = {
            "Zotero-API-Key": str(api_key or "").strip(),
            "Zotero-API-Version": "3",
            "User-Agent": self._user_agent,
            "Accept": "application/json",
        }
        if include_json:
            headers["Content-Type"] = "application/json"
        return headers
