from pdfdedup.application.services.canonical_selector import CanonicalSelector, KeepPolicy
from pdfdedup.application.services.duplicate_grouper import DuplicateGrouper
from pdfdedup.application.services.duplicate_matcher import (
    excluding_urls_for,
    is_duplicate,
    url_contains,
)
from pdfdedup.application.services.removal_executor import RemovalExecutor
from pdfdedup.application.services.removal_planner import RemovalPlanner, SciHubOnlyPolicy
from pdfdedup.application.services.version_classifier import VersionClassifier

__all__ = [
    "CanonicalSelector",
    "KeepPolicy",
    "DuplicateGrouper",
    "excluding_urls_for",
    "is_duplicate",
    "url_contains",
    "RemovalExecutor",
    "RemovalPlanner",
    "SciHubOnlyPolicy",
    "VersionClassifier",
]
