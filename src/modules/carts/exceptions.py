"""Cart domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import NotFoundError


class CartItemNotFound(NotFoundError):
    """The user's cart holds no line for the given product."""
