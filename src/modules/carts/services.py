"""Cart service layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

import structlog

from modules.carts.exceptions import CartItemNotFound
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.carts.dtos import AddCartItemDTO
    from modules.carts.models import CartItem
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    """Per-user cart maintenance.

    Lines for products that later become inactive stay in the cart; the
    order commit drops them.
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    def add_item(self, user_id: Any, dto: AddCartItemDTO) -> CartItem:
        """Raises:
        ProductNotFound: the product does not exist or is not for sale.
        """
        product = self._product_repo.get_by_id(str(dto.product_id))
        if not product or not product.is_purchasable:
            raise ProductNotFound(f"Product {dto.product_id} not found.")

        item = self._cart_repo.add(user_id, product.id, dto.quantity)
        logger.info(
            "cart.item_added",
            user_id=str(user_id),
            product_id=str(product.id),
            quantity=item.quantity,
        )
        return item

    def remove_item(self, user_id: Any, product_id: Any) -> None:
        if not self._cart_repo.remove(user_id, product_id):
            raise CartItemNotFound(f"Product {product_id} is not in the cart.")
        logger.info("cart.item_removed", user_id=str(user_id), product_id=str(product_id))

    def lines(self, user_id: Any) -> List[CartItem]:
        return self._cart_repo.lines_for_user(user_id)

    def clear(self, user_id: Any) -> int:
        return self._cart_repo.clear(user_id)
