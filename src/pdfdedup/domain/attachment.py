# src/pdfdedup/domain/attachment.py
"""
Attachment deduplication domain models.

Contains data structures shared by the deduplication engine:
- VersionTier: Editorial stage of an attachment
- AttachmentRecord: One PDF attachment with the file facts used for matching
- ParentRecord: The bibliographic record owning the attachments
- DuplicateGroup / RemovalPlan: Grouping and planning results
- RemovalResult / DedupRunSummary: Execution counters
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional


class VersionTier(str, Enum):
    """Coarse editorial stage of an attachment."""

    UNVERSIONED = "unversioned"
    PREPRINT = "preprint"
    ACCEPTED = "accepted"
    PUBLISHED = "published"

    @property
    def is_versioned(self) -> bool:
        return self is not VersionTier.UNVERSIONED


SCI_HUB_HINT = "Sci-Hub"


@dataclass
class AttachmentRecord:
    """
    A PDF attachment under one parent record.

    Required fields: id, title, file_size, last_modified
    `tier` and `source_hint` are derived locally by the version classifier.
    """

    id: str
    title: str
    file_size: int
    last_modified: float
    url: str = ""
    parent_id: Optional[str] = None
    tier: VersionTier = VersionTier.UNVERSIONED
    source_hint: Optional[str] = None

    @property
    def normalized_url(self) -> str:
        return (self.url or "").strip().lower()

    @property
    def is_sci_hub(self) -> bool:
        return (self.source_hint or "").lower() == SCI_HUB_HINT.lower()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "file_size": self.file_size,
            "last_modified": self.last_modified,
            "parent_id": self.parent_id,
            "tier": self.tier.value,
            "source_hint": self.source_hint,
        }


@dataclass
class ParentRecord:
    """Bibliographic record that owns attachments."""

    id: str
    title: str
    item_type: str
    is_regular: bool = True

    @property
    def is_webpage(self) -> bool:
        return self.item_type == "webpage"


@dataclass
class DuplicateGroup:
    """Attachments mutually reachable through the fuzzy duplicate predicate."""

    members: List[AttachmentRecord]

    @property
    def ids(self) -> List[str]:
        return [m.id for m in self.members]

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[AttachmentRecord]:
        return iter(self.members)


@dataclass
class RemovalPlan:
    """
    Accumulating set of attachments slated for removal.

    Insertion order is preserved; adding an id twice is a no-op.
    """

    parent_id: Optional[str] = None
    entries: Dict[str, AttachmentRecord] = field(default_factory=dict, repr=False)
    kept: List[AttachmentRecord] = field(default_factory=list)

    def add(self, record: AttachmentRecord) -> bool:
        """Add a record; returns False when it was already planned."""
        if record.id in self.entries:
            return False
        self.entries[record.id] = record
        return True

    def extend(self, records: Iterable[AttachmentRecord]) -> int:
        return sum(1 for r in records if self.add(r))

    def keep(self, record: AttachmentRecord) -> None:
        if all(k.id != record.id for k in self.kept):
            self.kept.append(record)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[AttachmentRecord]:
        return iter(self.entries.values())

    @property
    def ids(self) -> List[str]:
        return list(self.entries)

    @property
    def records(self) -> List[AttachmentRecord]:
        return list(self.entries.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parent_id": self.parent_id,
            "remove": [r.to_dict() for r in self.records],
            "keep": [r.to_dict() for r in self.kept],
        }


@dataclass
class RemovalResult:
    """Per-record execution counters."""

    removed: int = 0
    errors: int = 0

    def __add__(self, other: "RemovalResult") -> "RemovalResult":
        return RemovalResult(
            removed=self.removed + other.removed,
            errors=self.errors + other.errors,
        )


@dataclass
class DedupRunSummary:
    """Aggregated result of one deduplication run over many parent records."""

    run_id: str
    items_processed: int = 0
    total_planned: int = 0
    total_removed: int = 0
    total_errors: int = 0
    dry_run: bool = False
    plans: List[RemovalPlan] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def has_outcome(self) -> bool:
        """Whether there is anything worth reporting to the user."""
        if self.dry_run:
            return self.total_planned > 0 or self.total_errors > 0
        return self.total_removed > 0 or self.total_errors > 0

    def message(self) -> str:
        if self.dry_run:
            return f"Planned removal of {self.total_planned} attachments (dry run)."
        return (
            f"Successfully removed {self.total_removed} attachments. "
            f"Errors: {self.total_errors}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "run_id": self.run_id,
            "items_processed": self.items_processed,
            "total_planned": self.total_planned,
            "total_removed": self.total_removed,
            "total_errors": self.total_errors,
            "dry_run": self.dry_run,
            "duration_seconds": self.duration_seconds,
            "plans": [p.to_dict() for p in self.plans],
        }
