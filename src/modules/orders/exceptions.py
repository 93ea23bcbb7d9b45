"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from modules.core.exceptions import (
    AuthorizationError,
    DomainValidationError,
    NotFoundError,
    ReconciliationRequired,
)


class OrderNotFound(NotFoundError):
    """The requested order does not exist."""


class InvalidOrderStatus(DomainValidationError):
    """An invalid status transition was attempted."""


class NothingToOrder(DomainValidationError):
    """The cart holds no purchasable line."""


class PaymentNotConfirmed(DomainValidationError):
    """The commit was attempted without a confirmed payment."""


class OrderAccessDenied(AuthorizationError):
    """The order belongs to another user."""


class CommitReconciliationRequired(ReconciliationRequired):
    """The commit failed after stock or coupon updates were issued.

    The database transaction normally rolls them back; this is raised
    when the outcome cannot be confirmed (e.g. the COMMIT itself failed)
    and the order must be checked by hand.
    """

    def __init__(self, message: str, payment_reference: str | None = None) -> None:
        super().__init__(message)
        self.payment_reference = payment_reference
