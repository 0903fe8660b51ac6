"""
CLI entry point.

Resolves duplicate PDF attachments of Zotero items.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from pdfdedup import __version__
from pdfdedup.application.services import (
    CanonicalSelector,
    KeepPolicy,
    RemovalPlanner,
    SciHubOnlyPolicy,
    VersionClassifier,
)
from pdfdedup.application.workflows.dedup_pipeline import DedupPipeline
from pdfdedup.config import DedupSettings
from pdfdedup.domain.attachment import DedupRunSummary
from pdfdedup.domain.version_rules import VersionRules, version_label
from pdfdedup.infrastructure.adapters import ZoteroAttachmentStore
from pdfdedup.infrastructure.connectors.zotero_connector import ZoteroConnector

# Load local .env automatically so library credentials need not be passed as flags.
load_dotenv(find_dotenv(usecwd=True), override=False)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--item",
        "-i",
        action="append",
        dest="items",
        default=None,
        help="Parent item key, repeatable",
    )
    parser.add_argument("--all", action="store_true", help="Process every top-level item")
    parser.add_argument("--max-items", type=int, default=1000, help="Limit for --all")
    parser.add_argument("--library-type", choices=["user", "group"], default=None)
    parser.add_argument("--library-id", default=None)
    parser.add_argument("--storage-dir", default=None, help="Zotero storage directory")
    parser.add_argument(
        "--keep",
        choices=[p.value for p in KeepPolicy],
        default=None,
        help="Which copy of a duplicate group to keep (default: latest)",
    )
    parser.add_argument(
        "--scihub-only",
        choices=[p.value for p in SciHubOnlyPolicy],
        default=None,
        help="Published handling when every copy is from Sci-Hub (default: grouped)",
    )
    parser.add_argument(
        "--infer-tier",
        action="store_true",
        help="Derive a tier from the source URL for untagged attachments",
    )
    parser.add_argument("--rules", default=None, help="YAML file with version rules")
    parser.add_argument("--json", action="store_true", help="Print the JSON summary")
    parser.add_argument("--verbose", action="store_true", help="Debug logging to stderr")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdfdedup",
        description="Remove redundant PDF attachment copies, keeping one per version",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    dedupe_parser = subparsers.add_parser("dedupe", help="Plan and trash duplicate attachments")
    _add_common_arguments(dedupe_parser)
    dedupe_parser.add_argument(
        "--dry-run", action="store_true", help="Plan only, do not trash anything"
    )

    plan_parser = subparsers.add_parser("plan", help="Show what would be kept and removed")
    _add_common_arguments(plan_parser)

    parser.add_argument("--version", "-v", action="store_true", help="Show version")
    return parser


def build_settings(parsed: argparse.Namespace) -> DedupSettings:
    """Environment settings overridden by explicit CLI flags."""
    settings = DedupSettings.from_env()
    if parsed.library_type:
        settings.library_type = parsed.library_type
    if parsed.library_id:
        settings.library_id = parsed.library_id
    if parsed.storage_dir:
        settings.storage_dir = parsed.storage_dir
    if parsed.keep:
        settings.keep_policy = KeepPolicy(parsed.keep)
    if parsed.scihub_only:
        settings.sci_hub_only_policy = SciHubOnlyPolicy(parsed.scihub_only)
    if parsed.infer_tier:
        settings.infer_tier_from_hint = True
    if parsed.rules:
        settings.rules_path = parsed.rules
    if getattr(parsed, "dry_run", False) or parsed.command == "plan":
        settings.dry_run = True
    return settings


def build_planner(settings: DedupSettings) -> RemovalPlanner:
    if settings.rules_path:
        rules = VersionRules.from_yaml(
            settings.rules_path, infer_tier_from_hint=settings.infer_tier_from_hint
        )
    else:
        rules = VersionRules(infer_tier_from_hint=settings.infer_tier_from_hint)
    return RemovalPlanner(
        classifier=VersionClassifier(rules),
        selector=CanonicalSelector(settings.keep_policy),
        sci_hub_only_policy=settings.sci_hub_only_policy,
    )


def build_store(settings: DedupSettings) -> ZoteroAttachmentStore:
    if not settings.library_id:
        raise ValueError("library id is required (--library-id or PDFDEDUP_LIBRARY_ID)")
    return ZoteroAttachmentStore(
        api_key=settings.api_key,
        library_type=settings.library_type,
        library_id=settings.library_id,
        storage_dir=settings.storage_path,
        connector=ZoteroConnector(timeout_s=settings.timeout_s),
    )


async def _run_pipeline(
    parsed: argparse.Namespace, settings: DedupSettings
) -> Optional[DedupRunSummary]:
    store = build_store(settings)
    item_keys: List[str] = list(parsed.items or [])
    if parsed.all:
        item_keys.extend(await store.list_top_item_keys(max_items=max(1, parsed.max_items)))
    if not item_keys:
        return None

    pipeline = DedupPipeline(
        store,
        store,
        planner=build_planner(settings),
        dry_run=settings.dry_run,
    )
    return await pipeline.run_sync(item_keys)


def _print_plans(summary: DedupRunSummary) -> None:
    for plan in summary.plans:
        print(f"{plan.parent_id}:")
        for record in plan.kept:
            print(f"  keep    {record.id}  {version_label(record.tier, record.source_hint)}  {record.title}")
        for record in plan:
            print(f"  remove  {record.id}  {version_label(record.tier, record.source_hint)}  {record.title}")


def run_cli(args: Optional[list] = None) -> int:
    """
    Run the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"pdfdedup v{__version__}")
        return 0

    if not parsed.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = build_settings(parsed)
        summary = asyncio.run(_run_pipeline(parsed, settings))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if summary is None:
        print("No items given; use --item KEY or --all", file=sys.stderr)
        return 2

    if parsed.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
        return 0

    if parsed.command == "plan":
        _print_plans(summary)
    if summary.has_outcome:
        print(summary.message())
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
