# src/pdfdedup/application/services/removal_planner.py
"""
Removal planning service.

Decides which PDF attachments of one parent record are redundant copies.
Tiers are resolved in a fixed order so that a copy of a distinct version
is never discarded in favour of a copy of another version.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pdfdedup.application.services.canonical_selector import CanonicalSelector
from pdfdedup.application.services.duplicate_grouper import DuplicateGrouper
from pdfdedup.application.services.duplicate_matcher import excluding_urls_for
from pdfdedup.application.services.version_classifier import VersionClassifier
from pdfdedup.domain.attachment import (
    AttachmentRecord,
    DuplicateGroup,
    RemovalPlan,
    VersionTier,
)
from pdfdedup.domain.version_rules import version_label

logger = logging.getLogger(__name__)


class SciHubOnlyPolicy(str, Enum):
    """Published-tier handling when every Published copy came from Sci-Hub."""

    # Resolve each duplicate group separately, like the other tiers
    GROUPED = "grouped"
    # Keep a single Published copy overall
    SINGLE = "single"


class RemovalPlanner:
    """
    Tier-by-tier removal planner.

    Order of passes:
    1. Classify PDF attachments by version tier
    2. Unversioned: drop copies subsumed by any versioned attachment, then
       resolve the remaining unversioned copies as duplicate groups, where
       supplemental material matches by size only
    3. Published: prefer non-Sci-Hub copies, then resolve duplicate groups
    4. Accepted: resolve duplicate groups
    5. Preprint: resolve duplicate groups

    Each pass skips records already planned for removal or already kept.
    """

    def __init__(
        self,
        classifier: Optional[VersionClassifier] = None,
        grouper: Optional[DuplicateGrouper] = None,
        selector: Optional[CanonicalSelector] = None,
        *,
        sci_hub_only_policy: SciHubOnlyPolicy = SciHubOnlyPolicy.GROUPED,
    ):
        self.classifier = classifier or VersionClassifier()
        self.grouper = grouper or DuplicateGrouper()
        self.selector = selector or CanonicalSelector()
        self.sci_hub_only_policy = SciHubOnlyPolicy(sci_hub_only_policy)
        # Unversioned leftovers: supplements only join a group by size
        self.leftover_grouper = DuplicateGrouper(
            excluding_urls_for(self.classifier.rules.is_excluded)
        )

    def plan(
        self,
        attachments: Sequence[AttachmentRecord],
        *,
        parent_id: Optional[str] = None,
    ) -> RemovalPlan:
        """
        Build the removal plan for one parent record's PDF attachments.

        Args:
            attachments: PDF attachments of a single parent record
            parent_id: Parent record id, carried on the plan for reporting

        Returns:
            RemovalPlan; empty when fewer than two attachments are given
        """
        plan = RemovalPlan(parent_id=parent_id)
        if len(attachments) < 2:
            return plan

        classified = self.classifier.classify_all(attachments)
        pools = self.classifier.partition(classified)

        self._unversioned_pass(pools, plan)
        self._published_pass(pools[VersionTier.PUBLISHED], plan)
        self._resolve_groups(pools[VersionTier.ACCEPTED], plan)
        self._resolve_groups(pools[VersionTier.PREPRINT], plan)

        logger.debug(
            f"Planned {len(plan)} of {len(classified)} attachments for removal"
            f" (parent={parent_id})"
        )
        return plan

    def _unversioned_pass(
        self,
        pools: Dict[VersionTier, List[AttachmentRecord]],
        plan: RemovalPlan,
    ) -> None:
        versioned = (
            pools[VersionTier.PUBLISHED]
            + pools[VersionTier.ACCEPTED]
            + pools[VersionTier.PREPRINT]
        )
        # Copies not covered by a versioned attachment are grouped among themselves
        leftover: List[AttachmentRecord] = []
        for record in pools[VersionTier.UNVERSIONED]:
            if self.grouper.is_subsumed(record, versioned, self.classifier.rules):
                logger.debug(f"Unversioned attachment {record.id} subsumed by a versioned copy")
                plan.add(record)
            else:
                leftover.append(record)
        self._resolve_groups(leftover, plan, self.leftover_grouper)

    def _published_pass(self, published: List[AttachmentRecord], plan: RemovalPlan) -> None:
        if not published:
            return

        if any(not r.is_sci_hub for r in published):
            sci_hub = [r for r in published if r.is_sci_hub]
            added = plan.extend(sci_hub)
            if added:
                logger.debug(f"Dropping {added} Sci-Hub copies in favour of a direct source")
            self._resolve_groups([r for r in published if not r.is_sci_hub], plan)
            return

        if self.sci_hub_only_policy is SciHubOnlyPolicy.SINGLE:
            candidates = [r for r in published if r.id not in plan]
            if candidates:
                self._apply_group(DuplicateGroup(members=candidates), plan)
            return

        self._resolve_groups(published, plan)

    def _resolve_groups(
        self,
        records: List[AttachmentRecord],
        plan: RemovalPlan,
        grouper: Optional[DuplicateGrouper] = None,
    ) -> None:
        """Extract duplicate groups until every pending record is assigned."""
        grouper = grouper or self.grouper
        kept_ids = {k.id for k in plan.kept}
        unassigned = [r for r in records if r.id not in plan and r.id not in kept_ids]
        while unassigned:
            group = grouper.find_group(unassigned[0], unassigned)
            self._apply_group(group, plan)
            grouped = set(group.ids)
            unassigned = [r for r in unassigned if r.id not in grouped]

    def _apply_group(self, group: DuplicateGroup, plan: RemovalPlan) -> None:
        canonical, redundant = self.selector.select(group)
        plan.keep(canonical)
        plan.extend(redundant)
        if redundant:
            logger.debug(
                f"Keeping {canonical.id} "
                f"({version_label(canonical.tier, canonical.source_hint)}), "
                f"removing {[r.id for r in redundant]}"
            )
