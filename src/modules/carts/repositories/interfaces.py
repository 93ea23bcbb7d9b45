"""Cart repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Mapping

if TYPE_CHECKING:
    from modules.carts.models import CartItem


class ICartRepository(ABC):
    @abstractmethod
    def lines_for_user(self, user_id: Any) -> List[CartItem]:
        """Cart lines with their product eagerly loaded, oldest first."""

    @abstractmethod
    def add(self, user_id: Any, product_id: Any, quantity: int) -> CartItem:
        """Add ``quantity`` units, merging with an existing line."""

    @abstractmethod
    def remove(self, user_id: Any, product_id: Any) -> bool:
        """Delete the line for ``product_id``; ``False`` if there was none."""

    @abstractmethod
    def clear(self, user_id: Any) -> int:
        """Delete every line of the user's cart and return how many went."""

    @abstractmethod
    def remove_checked_out(self, user_id: Any, quantities: Mapping[Any, int]) -> int:
        """Take ordered units off the lines they were read from.

        ``quantities`` maps cart line id to the quantity that was read.
        Lines added or topped up since then keep the difference.
        Returns the number of lines deleted.
        """
