"""Invoice service: ownership check, stored copy, render on demand."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from modules.invoices.storage import invoice_filename

if TYPE_CHECKING:
    from modules.invoices.renderer import InvoiceRenderer
    from modules.invoices.storage import InvoiceStorage
    from modules.orders.services import OrderQueryService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InvoiceDocument:
    filename: str
    content: bytes
    from_storage: bool = False
    content_type: str = "application/pdf"


class InvoiceService:
    def __init__(
        self,
        queries: OrderQueryService,
        renderer: InvoiceRenderer,
        storage: InvoiceStorage,
    ) -> None:
        self._queries = queries
        self._renderer = renderer
        self._storage = storage

    def get_invoice(self, order_id: Any, user: Any) -> InvoiceDocument:
        """Return the invoice for one of ``user``'s orders.

        A failed storage read or write only costs a re-render; the
        document is still returned.

        Raises:
            OrderNotFound: order does not exist.
            OrderAccessDenied: the order belongs to someone else.
            InvoiceRenderingError: the layout could not be computed.
        """
        order = self._queries.get_order_for_user(order_id, user)
        filename = invoice_filename(order.id)
        log = logger.bind(order_id=str(order.id))

        try:
            stored = self._storage.load(order.id)
        except OSError as exc:
            log.warning("invoice.storage_read_failed", error=str(exc))
            stored = None
        if stored:
            log.info("invoice.served_from_storage")
            return InvoiceDocument(filename=filename, content=stored, from_storage=True)

        content = self._renderer.render(order)
        try:
            self._storage.save(order.id, content)
        except OSError as exc:
            log.error("invoice.storage_failed", error=str(exc))
        return InvoiceDocument(filename=filename, content=content)
