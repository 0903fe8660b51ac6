# src/pdfdedup/application/services/duplicate_matcher.py
"""
Fuzzy duplicate predicate for attachments of the same parent record.

No content hash is available, so two attachments are treated as copies of
the same file when their sizes are equal or when one source URL contains
the other. False positives are preferred over false negatives here.
"""

from __future__ import annotations

from typing import Callable

from pdfdedup.domain.attachment import AttachmentRecord

DuplicatePredicate = Callable[[AttachmentRecord, AttachmentRecord], bool]


def url_contains(a: AttachmentRecord, b: AttachmentRecord) -> bool:
    """Case-insensitive substring match in either direction; empty URLs never match."""
    url_a = a.normalized_url
    url_b = b.normalized_url
    if not url_a or not url_b:
        return False
    return url_a in url_b or url_b in url_a


def same_size(a: AttachmentRecord, b: AttachmentRecord) -> bool:
    return a.file_size == b.file_size


def is_duplicate(a: AttachmentRecord, b: AttachmentRecord) -> bool:
    """Symmetric fuzzy duplicate check."""
    return same_size(a, b) or url_contains(a, b)


def excluding_urls_for(is_excluded: Callable[[str], bool]) -> DuplicatePredicate:
    """
    Fuzzy duplicate check where flagged titles can only match by size.

    Supplemental material usually lives under the paper's own URL, so a
    URL match involving it says nothing about file identity.
    """

    def predicate(a: AttachmentRecord, b: AttachmentRecord) -> bool:
        if same_size(a, b):
            return True
        if is_excluded(a.title) or is_excluded(b.title):
            return False
        return url_contains(a, b)

    return predicate
