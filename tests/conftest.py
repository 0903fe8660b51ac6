# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src/ to sys.path so `import pdfdedup` works without installation.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from pdfdedup.application.ports.attachment_store_port import AttachmentStoreError  # noqa: E402
from pdfdedup.domain.attachment import AttachmentRecord, ParentRecord  # noqa: E402
from pdfdedup.utils.logging_config import Logger  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_log_dir(tmp_path, monkeypatch):
    """Write file logs under the test's tmp dir."""
    monkeypatch.setenv("PDFDEDUP_LOG_DIR", str(tmp_path / "logs"))
    Logger.close()
    yield
    Logger.close()


class FakeAttachmentStore:
    """In-memory attachment store implementing both ports."""

    def __init__(self):
        self.parents: Dict[str, ParentRecord] = {}
        self.attachments: Dict[str, List[AttachmentRecord]] = {}
        self.fail_on: Set[str] = set()
        self.trashed: List[str] = []
        self.trash_attempts: List[str] = []

    def add_parent(
        self,
        parent_id: str,
        attachments: List[AttachmentRecord],
        *,
        title: str = "A Paper",
        item_type: str = "journalArticle",
        is_regular: bool = True,
    ) -> ParentRecord:
        parent = ParentRecord(id=parent_id, title=title, item_type=item_type, is_regular=is_regular)
        self.parents[parent_id] = parent
        self.attachments[parent_id] = list(attachments)
        return parent

    async def get_parent(self, parent_id: str) -> Optional[ParentRecord]:
        return self.parents.get(parent_id)

    async def list_pdf_attachments(self, parent: ParentRecord) -> List[AttachmentRecord]:
        return [a for a in self.attachments.get(parent.id, []) if a.id not in self.trashed]

    async def trash(self, attachment: AttachmentRecord) -> None:
        self.trash_attempts.append(attachment.id)
        if attachment.id in self.fail_on:
            raise AttachmentStoreError("store rejected the operation", item_id=attachment.id)
        self.trashed.append(attachment.id)

    async def list_top_item_keys(self, max_items: int = 1000) -> List[str]:
        return list(self.parents)[:max_items]


@pytest.fixture
def fake_store():
    return FakeAttachmentStore()
