"""Product repository interface.

Extends ``IRepository[Product]`` with the atomic stock mutation used by
the inventory ledger during order commit.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List live (not soft-deleted) products."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a product."""

    @abstractmethod
    def deplete_stock(self, id: Any, quantity: int) -> Optional[int]:
        """Atomically decrement stock, floored at zero.

        Rewrites ``is_active`` in the same statement and returns the new
        stock, or ``None`` when the product does not exist.
        """
