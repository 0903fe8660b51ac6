"""Application ports (interfaces) used by the application layer."""

from .attachment_store_port import (
    AttachmentQueryPort,
    AttachmentStoreError,
    AttachmentTrashPort,
)

__all__ = [
    "AttachmentQueryPort",
    "AttachmentStoreError",
    "AttachmentTrashPort",
]
