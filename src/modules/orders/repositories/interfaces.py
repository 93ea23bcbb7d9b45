"""Order repository interface.

Extends ``IRepository[Order]`` with what the commit and the state
machine need: creation of the whole aggregate, row locking, tracking
append and payment-reference look-up.  There is no ``delete``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderTrackingEntry


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderLine children and OrderTrackingEntry
    records.  Pending domain events are written to the outbox by
    ``create`` and ``save``.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its lines and first tracking entry.

        ``data`` must include ``user_id``, ``email``, ``total_amount``,
        ``lines`` (dicts with ``product_id``, ``title``, ``description``,
        ``image_url``, ``price``, ``quantity``) and ``note``; optionally
        ``coupon_code``, ``coupon_discount_percent``,
        ``payment_reference`` and ``payment_method``.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched lines and tracking."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding its row lock until commit."""

    @abstractmethod
    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        """Retrieve the order created for a payment, if any."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def list_for_user(self, user_id: Any) -> List[Order]:
        """List a user's orders, newest first."""

    @abstractmethod
    def queryset(self) -> QuerySet:
        """Unevaluated queryset for API filtering and pagination."""

    @abstractmethod
    def add_tracking(self, order: Order, status: str, note: str) -> OrderTrackingEntry:
        """Append a tracking entry."""
