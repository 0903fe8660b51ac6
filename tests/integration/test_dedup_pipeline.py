"""
DedupPipeline integration tests.

Runs the complete pipeline against the in-memory attachment store.
"""

import pytest
from unittest.mock import AsyncMock

from pdfdedup.application.services.removal_planner import RemovalPlanner
from pdfdedup.application.workflows.dedup_pipeline import DedupPipeline, DedupProgress
from pdfdedup.domain.attachment import AttachmentRecord, DedupRunSummary


def _att(att_id, title, size, mtime=0.0, url=""):
    return AttachmentRecord(id=att_id, title=title, url=url, file_size=size, last_modified=mtime)


@pytest.fixture
def populated_store(fake_store):
    fake_store.add_parent(
        "P1",
        [
            _att("A1", "Full Text PDF", 102400, mtime=1.0),
            _att("A2", "Full Text PDF", 102400, mtime=2.0),
        ],
        title="Duplicated Paper",
    )
    fake_store.add_parent(
        "P2",
        [
            _att("B1", "Published Version (Sci-Hub)", 100, mtime=1.0),
            _att("B2", "Published Version", 200, mtime=2.0),
            _att("B3", "Published Version (Sci-Hub)", 100, mtime=3.0),
            _att("B4", "Preprint (arXiv)", 300, mtime=4.0),
        ],
        title="Paper With Mirrors",
    )
    fake_store.add_parent("P3", [_att("C1", "Published Version", 1)], title="Single PDF")
    fake_store.add_parent(
        "P4",
        [_att("D1", "Full Text", 1), _att("D2", "Full Text", 1)],
        title="Saved Page",
        item_type="webpage",
    )
    fake_store.add_parent(
        "N1",
        [_att("E1", "Full Text", 1), _att("E2", "Full Text", 1)],
        title="A note",
        item_type="note",
        is_regular=False,
    )
    return fake_store


class TestDedupPipeline:
    """DedupPipeline tests."""

    @pytest.mark.asyncio
    async def test_run_sync_aggregates_totals(self, populated_store):
        pipeline = DedupPipeline(populated_store, populated_store)

        summary = await pipeline.run_sync(["P1", "P2", "P3", "P4", "N1"])

        assert isinstance(summary, DedupRunSummary)
        assert summary.items_processed == 5
        assert summary.total_removed == 3
        assert summary.total_errors == 0
        assert summary.has_outcome
        assert sorted(populated_store.trashed) == ["A1", "B1", "B3"]
        assert summary.message() == "Successfully removed 3 attachments. Errors: 0"

    @pytest.mark.asyncio
    async def test_skip_conditions_remove_nothing(self, populated_store):
        pipeline = DedupPipeline(populated_store, populated_store)

        for parent_id, reason in [
            ("P3", "fewer than two PDFs"),
            ("P4", "webpage item"),
            ("N1", "not a regular item"),
            ("missing", "not found"),
        ]:
            outcome = await pipeline.process_item(parent_id)
            assert outcome.skip_reason == reason
            assert len(outcome.plan) == 0
            assert (outcome.result.removed, outcome.result.errors) == (0, 0)

        assert populated_store.trash_attempts == []

    @pytest.mark.asyncio
    async def test_store_errors_are_counted_per_attachment(self, populated_store):
        populated_store.fail_on = {"B1"}
        pipeline = DedupPipeline(populated_store, populated_store)

        summary = await pipeline.run_sync(["P1", "P2"])

        assert summary.total_removed == 2
        assert summary.total_errors == 1
        assert "B3" in populated_store.trashed

    @pytest.mark.asyncio
    async def test_dry_run_plans_without_removing(self, populated_store):
        pipeline = DedupPipeline(populated_store, populated_store, dry_run=True)

        summary = await pipeline.run_sync(["P1", "P2"])

        assert summary.total_planned == 3
        assert summary.total_removed == 0
        assert populated_store.trash_attempts == []
        assert [p.parent_id for p in summary.plans] == ["P1", "P2"]
        assert summary.has_outcome
        assert "dry run" in summary.message()

    @pytest.mark.asyncio
    async def test_second_run_finds_nothing(self, populated_store):
        pipeline = DedupPipeline(populated_store, populated_store)
        await pipeline.run_sync(["P1", "P2"])

        summary = await pipeline.run_sync(["P1", "P2"])

        assert summary.total_planned == 0
        assert not summary.has_outcome

    @pytest.mark.asyncio
    async def test_failure_while_loading_is_isolated(self, populated_store):
        query_port = AsyncMock()
        query_port.get_parent.side_effect = [RuntimeError("API down"), populated_store.parents["P1"]]
        query_port.list_pdf_attachments.return_value = populated_store.attachments["P1"]
        pipeline = DedupPipeline(query_port, populated_store)

        updates = [u async for u in pipeline.run(["P2", "P1"])]

        summary = updates[-1]
        assert isinstance(summary, DedupRunSummary)
        assert summary.items_processed == 2
        assert summary.total_errors == 1
        assert summary.total_removed == 1
        assert isinstance(updates[0], DedupProgress)
        assert updates[0].details["error"] == "API down"

    @pytest.mark.asyncio
    async def test_progress_updates_per_item(self, populated_store):
        pipeline = DedupPipeline(populated_store, populated_store)

        updates = [u async for u in pipeline.run(["P1", "P3"], run_id="dedup-test")]

        assert len(updates) == 3
        assert updates[0].parent_id == "P1"
        assert updates[0].details == {"planned": 1, "removed": 1, "errors": 0}
        assert updates[1].skipped
        assert updates[2].run_id == "dedup-test"

    @pytest.mark.asyncio
    async def test_custom_planner_is_used(self, populated_store):
        planner = RemovalPlanner(sci_hub_only_policy="single")
        pipeline = DedupPipeline(populated_store, populated_store, planner=planner)
        assert pipeline.planner is planner

    def test_new_run_id_format(self):
        run_id = DedupPipeline.new_run_id()
        assert run_id.startswith("dedup-")
        assert len(run_id.split("-")) == 4
