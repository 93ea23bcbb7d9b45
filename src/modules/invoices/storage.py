"""Persisted invoice copies, kept in Django's configured storage."""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage

logger = structlog.get_logger(__name__)


def invoice_filename(order_id: Any) -> str:
    return f"invoice-{order_id}.pdf"


class InvoiceStorage:
    def __init__(self, storage: Optional[Storage] = None, prefix: Optional[str] = None) -> None:
        self._storage = storage or default_storage
        self._prefix = (prefix if prefix is not None else settings.INVOICE_STORAGE_PREFIX).strip("/")

    def path_for(self, order_id: Any) -> str:
        name = invoice_filename(order_id)
        return f"{self._prefix}/{name}" if self._prefix else name

    def load(self, order_id: Any) -> Optional[bytes]:
        path = self.path_for(order_id)
        if not self._storage.exists(path):
            return None
        with self._storage.open(path, "rb") as fh:
            return fh.read()

    def save(self, order_id: Any, content: bytes) -> str:
        """Write ``content`` at the order's fixed path, replacing any old copy."""
        path = self.path_for(order_id)
        if self._storage.exists(path):
            self._storage.delete(path)
        saved = self._storage.save(path, ContentFile(content))
        logger.info("invoice.stored", order_id=str(order_id), path=saved)
        return saved
