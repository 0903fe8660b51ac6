# src/pdfdedup/application/services/canonical_selector.py
"""Pick the attachment to keep from a duplicate group."""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

from pdfdedup.domain.attachment import AttachmentRecord, DuplicateGroup


class KeepPolicy(str, Enum):
    """Which copy of a duplicate group survives."""

    LATEST_MODIFIED = "latest"
    EARLIEST_MODIFIED = "earliest"


class CanonicalSelector:
    """
    Deterministic canonical selection.

    LATEST_MODIFIED keeps the most recently modified file (updated
    downloads such as a newer arXiv revision win). EARLIEST_MODIFIED keeps
    the oldest file, which is where annotations usually live. Ties go to
    the first record in group order under both policies.
    """

    def __init__(self, policy: KeepPolicy = KeepPolicy.LATEST_MODIFIED):
        self.policy = KeepPolicy(policy)

    def _prefer(self, candidate: AttachmentRecord, best: AttachmentRecord) -> bool:
        if self.policy is KeepPolicy.EARLIEST_MODIFIED:
            return candidate.last_modified < best.last_modified
        return candidate.last_modified > best.last_modified

    def select(
        self, group: DuplicateGroup
    ) -> Tuple[AttachmentRecord, List[AttachmentRecord]]:
        """
        Returns:
            Tuple of (canonical record, records to remove)
        """
        members = list(group)
        if not members:
            raise ValueError("Cannot select a canonical record from an empty group")

        best = members[0]
        for candidate in members[1:]:
            if self._prefer(candidate, best):
                best = candidate
        return best, [m for m in members if m.id != best.id]
