# src/pdfdedup/application/services/duplicate_grouper.py
"""
Duplicate graph builder.

Computes duplicate groups as connected components of the implicit graph
whose edges are given by the fuzzy duplicate predicate.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterable, List, Optional, Sequence

from pdfdedup.application.services.duplicate_matcher import (
    DuplicatePredicate,
    is_duplicate,
    same_size,
    url_contains,
)
from pdfdedup.domain.attachment import AttachmentRecord, DuplicateGroup
from pdfdedup.domain.version_rules import VersionRules

logger = logging.getLogger(__name__)


class DuplicateGrouper:
    """
    Transitive-closure grouping over a candidate pool.

    Adjacency is evaluated lazily: each visited record is compared only
    against candidates that have not been reached yet, and every match is
    removed from the candidate list before the traversal continues. The
    candidate list therefore shrinks strictly on every productive step,
    which bounds the traversal by the pool size.
    """

    def __init__(self, predicate: Optional[DuplicatePredicate] = None):
        self.predicate = predicate or is_duplicate

    def find_group(
        self,
        cur: AttachmentRecord,
        base: Sequence[AttachmentRecord],
    ) -> DuplicateGroup:
        """
        Extract the duplicate group containing `cur` from `base`.

        Args:
            cur: Query record (need not be a member of `base`)
            base: Candidate records

        Returns:
            DuplicateGroup with `cur` first, then its direct matches, then
            records reached transitively, each id at most once
        """
        members: List[AttachmentRecord] = [cur]
        remaining = [r for r in base if r.id != cur.id]
        frontier: Deque[AttachmentRecord] = deque([cur])

        while frontier and remaining:
            node = frontier.popleft()
            matches = [r for r in remaining if self.predicate(node, r)]
            if not matches:
                continue
            matched_ids = {m.id for m in matches}
            remaining = [r for r in remaining if r.id not in matched_ids]
            members.extend(matches)
            frontier.extend(matches)

        return DuplicateGroup(members=_unique(members))

    def partition(self, records: Sequence[AttachmentRecord]) -> List[DuplicateGroup]:
        """Split `records` into disjoint groups covering every input record."""
        groups: List[DuplicateGroup] = []
        unassigned = _unique(records)
        while unassigned:
            group = self.find_group(unassigned[0], unassigned)
            groups.append(group)
            grouped = set(group.ids)
            unassigned = [r for r in unassigned if r.id not in grouped]
        return groups

    @staticmethod
    def is_subsumed(
        record: AttachmentRecord,
        versioned: Iterable[AttachmentRecord],
        rules: Optional[VersionRules] = None,
    ) -> bool:
        """
        One-directional check of an unversioned attachment against versioned ones.

        A size match always subsumes. A URL match subsumes only when the
        record's title is not marked as supplemental material.
        """
        pool = list(versioned)
        if any(same_size(record, v) for v in pool):
            return True
        if (rules or VersionRules()).is_excluded(record.title):
            return False
        return any(url_contains(record, v) for v in pool)


def _unique(records: Iterable[AttachmentRecord]) -> List[AttachmentRecord]:
    seen = set()
    result: List[AttachmentRecord] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        result.append(record)
    return result
