# src/pdfdedup/application/services/version_classifier.py
"""
Version classification service.

Labels each attachment with a VersionTier and a source hint and splits a
parent's attachments into per-tier pools.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Iterable, List, Optional

from pdfdedup.domain.attachment import AttachmentRecord, VersionTier
from pdfdedup.domain.version_rules import VersionRules

logger = logging.getLogger(__name__)


class VersionClassifier:
    """Pure title/URL classifier backed by a VersionRules table."""

    def __init__(self, rules: Optional[VersionRules] = None):
        self.rules = rules or VersionRules()

    def classify(self, record: AttachmentRecord) -> AttachmentRecord:
        """Return a copy of the record with tier and source hint set."""
        tier, hint = self.rules.classify(record.title, record.url)
        return dataclasses.replace(record, tier=tier, source_hint=hint)

    def classify_all(self, records: Iterable[AttachmentRecord]) -> List[AttachmentRecord]:
        return [self.classify(r) for r in records]

    @staticmethod
    def partition(records: Iterable[AttachmentRecord]) -> Dict[VersionTier, List[AttachmentRecord]]:
        """Group classified records by tier, preserving input order."""
        pools: Dict[VersionTier, List[AttachmentRecord]] = {t: [] for t in VersionTier}
        for record in records:
            pools[record.tier].append(record)
        return pools

    def is_excluded(self, record: AttachmentRecord) -> bool:
        return self.rules.is_excluded(record.title)
