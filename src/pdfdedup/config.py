# src/pdfdedup/config.py
"""
Runtime settings.

Values come from PDFDEDUP_* environment variables (a local .env is loaded
by the CLI); CLI flags override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pdfdedup.application.services.canonical_selector import KeepPolicy
from pdfdedup.application.services.removal_planner import SciHubOnlyPolicy

DEFAULT_STORAGE_DIR = "~/Zotero/storage"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y")


@dataclass
class DedupSettings:
    """Configuration for a deduplication run."""

    api_key: str = ""
    library_type: str = "user"
    library_id: str = ""
    storage_dir: str = DEFAULT_STORAGE_DIR
    keep_policy: KeepPolicy = KeepPolicy.LATEST_MODIFIED
    sci_hub_only_policy: SciHubOnlyPolicy = SciHubOnlyPolicy.GROUPED
    infer_tier_from_hint: bool = False
    rules_path: Optional[str] = None
    dry_run: bool = False
    timeout_s: float = 30.0

    def __post_init__(self) -> None:
        try:
            self.keep_policy = KeepPolicy(self.keep_policy)
        except ValueError:
            raise ValueError(
                f"keep_policy must be one of {[p.value for p in KeepPolicy]}"
            ) from None
        try:
            self.sci_hub_only_policy = SciHubOnlyPolicy(self.sci_hub_only_policy)
        except ValueError:
            raise ValueError(
                f"sci_hub_only_policy must be one of {[p.value for p in SciHubOnlyPolicy]}"
            ) from None
        self.library_type = (self.library_type or "").strip().lower()

    @classmethod
    def from_env(cls) -> "DedupSettings":
        return cls(
            api_key=os.getenv("ZOTERO_API_KEY", ""),
            library_type=os.getenv("PDFDEDUP_LIBRARY_TYPE", "user"),
            library_id=os.getenv("PDFDEDUP_LIBRARY_ID", ""),
            storage_dir=os.getenv("PDFDEDUP_STORAGE_DIR", DEFAULT_STORAGE_DIR),
            keep_policy=os.getenv("PDFDEDUP_KEEP_POLICY", KeepPolicy.LATEST_MODIFIED.value),
            sci_hub_only_policy=os.getenv(
                "PDFDEDUP_SCIHUB_ONLY_POLICY", SciHubOnlyPolicy.GROUPED.value
            ),
            infer_tier_from_hint=_env_flag("PDFDEDUP_INFER_TIER"),
            rules_path=os.getenv("PDFDEDUP_RULES_PATH") or None,
            dry_run=_env_flag("PDFDEDUP_DRY_RUN"),
            timeout_s=float(os.getenv("PDFDEDUP_TIMEOUT_S", "30")),
        )

    @property
    def storage_path(self) -> Path:
        return Path(self.storage_dir).expanduser()
