"""
Version detection rules for PDF attachments.

Maps attachment titles to a VersionTier and source URLs to a source hint.
The defaults cover the conventional "Published Version (Sci-Hub)" style of
attachment titles and the publisher hosts PDFs are usually fetched from.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Pattern, Tuple
from urllib.parse import urlsplit

from pdfdedup.domain.attachment import SCI_HUB_HINT, VersionTier

logger = logging.getLogger(__name__)

ARXIV_HINT = "arXiv"
ARXIV_DOMAINS = ("arxiv.org", "xxx.lanl.gov")

# Checked in this order; first match wins.
DEFAULT_TIER_PATTERNS: Dict[VersionTier, str] = {
    VersionTier.PUBLISHED: r"published",
    VersionTier.ACCEPTED: r"accepted",
    VersionTier.PREPRINT: r"submitted|preprint",
}
TIER_PRIORITY = (VersionTier.PUBLISHED, VersionTier.ACCEPTED, VersionTier.PREPRINT)

DEFAULT_EXCLUSION_PATTERN = r"supplement"

DEFAULT_PUBLISHER_HOSTS: Dict[str, str] = {
    "arxiv.org": ARXIV_HINT,
    "xxx.lanl.gov": ARXIV_HINT,
    "iop.org": "IOP",
    "aps.org": "APS",
    "springer.com": "Springer",
    "sciencedirect.com": "ScienceDirect",
    "sciencedirectassets.com": "ScienceDirect",
    "nature.com": "Nature",
    "scipost.org": "SciPost",
    "sissa.it": "SISSA",
    "aip.org": "AIP",
    "projecteuclid.org": "ProjectEuclid",
    "adsabs.harvard.edu": "ADS",
}

# Any host label starting with one of these prefixes, e.g. sci-hub.se
DEFAULT_AGGREGATOR_PREFIXES: Dict[str, str] = {
    "sci-hub": SCI_HUB_HINT,
}

TIER_LABELS: Dict[VersionTier, str] = {
    VersionTier.PUBLISHED: "Published Version",
    VersionTier.ACCEPTED: "Accepted Version",
    VersionTier.PREPRINT: "Preprint",
    VersionTier.UNVERSIONED: "Unknown",
}

_TITLE_HINT_RE = re.compile(
    r"(?:Published Version|Accepted Version|Preprint) \(([^)]+)\)", re.IGNORECASE
)
_ADS_ARXIV_RE = re.compile(r"eprint|arxiv", re.IGNORECASE)
_APS_ACCEPTED_RE = re.compile(r"://([^./]+\.)?aps\.org/accepted", re.IGNORECASE)


def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def url_host(url: Optional[str]) -> str:
    text = (url or "").strip()
    if not text:
        return ""
    try:
        return (urlsplit(text).hostname or "").lower()
    except ValueError:
        return ""


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


@dataclass
class VersionRules:
    """
    Configuration table for version classification.

    Tier patterns are case-insensitive regexes tried in fixed priority
    order (Published, Accepted, Preprint). Publisher hosts map a registered
    domain to its short name; subdomains match too.
    """

    tier_patterns: Dict[VersionTier, Pattern[str]] = field(
        default_factory=lambda: {t: _compile(p) for t, p in DEFAULT_TIER_PATTERNS.items()}
    )
    exclusion_pattern: Pattern[str] = field(
        default_factory=lambda: _compile(DEFAULT_EXCLUSION_PATTERN)
    )
    publisher_hosts: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PUBLISHER_HOSTS)
    )
    aggregator_prefixes: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_AGGREGATOR_PREFIXES)
    )
    infer_tier_from_hint: bool = False

    @classmethod
    def from_yaml(cls, config_path: str, *, infer_tier_from_hint: bool = False) -> "VersionRules":
        """
        Load rules from a YAML file, merged over the defaults.

        Recognised keys: tier_patterns (published/accepted/preprint),
        exclusion_pattern, publisher_hosts, aggregator_prefixes.
        """
        import yaml

        rules = cls(infer_tier_from_hint=infer_tier_from_hint)
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ValueError(f"Version rules in {config_path} must be a mapping")

        tier_patterns = config.get("tier_patterns") or {}
        if isinstance(tier_patterns, dict):
            for name, pattern in tier_patterns.items():
                try:
                    tier = VersionTier(str(name).lower())
                except ValueError:
                    raise ValueError(f"Unknown version tier in rules: {name}") from None
                if tier is VersionTier.UNVERSIONED:
                    raise ValueError("The unversioned tier cannot have a pattern")
                rules.tier_patterns[tier] = _compile(str(pattern))

        exclusion = config.get("exclusion_pattern")
        if exclusion:
            rules.exclusion_pattern = _compile(str(exclusion))

        hosts = config.get("publisher_hosts") or {}
        if isinstance(hosts, dict):
            rules.publisher_hosts.update(
                {str(k).lower(): str(v) for k, v in hosts.items()}
            )

        prefixes = config.get("aggregator_prefixes") or {}
        if isinstance(prefixes, dict):
            rules.aggregator_prefixes.update(
                {str(k).lower(): str(v) for k, v in prefixes.items()}
            )

        logger.info(f"Loaded version rules from {config_path}")
        return rules

    def tier_from_title(self, title: Optional[str]) -> VersionTier:
        text = title or ""
        for tier in TIER_PRIORITY:
            pattern = self.tier_patterns.get(tier)
            if pattern is not None and pattern.search(text):
                return tier
        return VersionTier.UNVERSIONED

    def is_excluded(self, title: Optional[str]) -> bool:
        """Whether the title marks supplemental material."""
        return bool(self.exclusion_pattern.search(title or ""))

    def hint_from_url(self, url: Optional[str]) -> Optional[str]:
        host = url_host(url)
        if not host:
            return None

        # arXiv mirrors take precedence over aggregator and publisher hosts
        for domain in ARXIV_DOMAINS:
            if _host_matches(host, domain):
                return ARXIV_HINT

        labels = host.split(".")
        for prefix, hint in self.aggregator_prefixes.items():
            if any(label.startswith(prefix) for label in labels):
                return hint

        for domain, hint in self.publisher_hosts.items():
            if _host_matches(host, domain):
                if hint == "ADS" and _ADS_ARXIV_RE.search(url or ""):
                    return ARXIV_HINT
                return hint
        return None

    def detect_source_hint(self, url: Optional[str], title: Optional[str] = None) -> Optional[str]:
        hint = self.hint_from_url(url)
        if hint:
            return hint
        match = _TITLE_HINT_RE.search(title or "")
        if match:
            return match.group(1).strip() or None
        return None

    def infer_tier(self, hint: Optional[str], url: Optional[str]) -> VersionTier:
        """Tier implied by a source hint for an untagged attachment."""
        if not hint:
            return VersionTier.UNVERSIONED
        if hint == ARXIV_HINT:
            return VersionTier.PREPRINT
        if hint.lower() == SCI_HUB_HINT.lower():
            return VersionTier.PUBLISHED
        if _APS_ACCEPTED_RE.search(url or ""):
            return VersionTier.ACCEPTED
        if hint in self.publisher_hosts.values():
            return VersionTier.PUBLISHED
        return VersionTier.UNVERSIONED

    def classify(self, title: Optional[str], url: Optional[str]) -> Tuple[VersionTier, Optional[str]]:
        """Return (tier, source hint) for one attachment. Never raises."""
        tier = self.tier_from_title(title)
        hint = self.detect_source_hint(url, title)
        # Supplemental material never gets a tier from its host
        if (
            tier is VersionTier.UNVERSIONED
            and self.infer_tier_from_hint
            and not self.is_excluded(title)
        ):
            tier = self.infer_tier(hint, url)
        return tier, hint


_DEFAULT_RULES = VersionRules()


def classify_version(
    title: Optional[str],
    url: Optional[str],
    rules: Optional[VersionRules] = None,
) -> Tuple[VersionTier, Optional[str]]:
    return (rules or _DEFAULT_RULES).classify(title, url)


def detect_source_hint(
    url: Optional[str],
    title: Optional[str] = None,
    rules: Optional[VersionRules] = None,
) -> Optional[str]:
    return (rules or _DEFAULT_RULES).detect_source_hint(url, title)


def version_label(tier: VersionTier, hint: Optional[str] = None) -> str:
    """Conventional attachment title, e.g. "Published Version (Sci-Hub)"."""
    label = TIER_LABELS[tier]
    if hint:
        return f"{label} ({hint})"
    return label
