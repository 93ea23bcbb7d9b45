"""Order domain constants.

Status choices and the transition table used by ``OrderStateMachine``.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    SHIPPED = "Shipped", "Shipped"
    DELIVERED = "Delivered", "Delivered"
    CANCELLED = "Cancelled", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

ORDER_PLACED_NOTE = "Order placed"

DEFAULT_PAYMENT_METHOD = "card"

# Attempts per stock/coupon update inside one commit before giving up.
ENTITY_UPDATE_MAX_RETRIES = 3
