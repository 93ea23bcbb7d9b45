"""Inventory ledger: atomic stock depletion for order commits."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class InventoryLedger:
    """Decrements stock per product without read-modify-write.

    Oversell is tolerated: stock floors at zero and the product is
    deactivated instead of the order being rejected.
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def reserve_and_deplete(self, product_id: Any, quantity: int) -> int:
        """Return the product's stock after removing ``quantity`` units.

        Raises:
            ValueError: ``quantity`` is less than one.
            ProductNotFound: no product with ``product_id``.
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")

        new_stock = self._repo.deplete_stock(product_id, quantity)
        if new_stock is None:
            raise ProductNotFound(f"Product {product_id} not found.")

        log = logger.bind(product_id=str(product_id), quantity=quantity)
        if new_stock == 0:
            log.warning("inventory.sold_out")
        else:
            log.info("inventory.depleted", remaining=new_stock)
        return new_stock
