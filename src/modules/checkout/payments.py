"""Payment provider boundary.

The storefront only needs two calls from a provider: open a payment
intent for an amount (the client token goes to the browser) and, once
the shopper has paid, confirm the intent.  ``SignedTokenGateway`` is a
self-contained provider for development and tests: the client token is
a Django-signed, time-stamped copy of the intent, and confirming checks
that signature.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

import structlog
import uuid6
from django.conf import settings
from django.core import signing
from django.utils.module_loading import import_string

from modules.orders.dtos import PaymentConfirmation

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    reference: str
    client_token: str
    amount: Decimal


class PaymentGateway(Protocol):
    def create_intent(self, reference: str, amount: Decimal) -> PaymentIntent: ...

    def confirm(self, reference: str, token: str) -> PaymentConfirmation: ...


def new_payment_reference() -> str:
    return f"pay_{uuid6.uuid7().hex}"


class SignedTokenGateway:
    salt = "storefront.checkout.payment"
    method = "card"

    def __init__(self, max_age: Optional[int] = None) -> None:
        self._max_age = max_age if max_age is not None else settings.PAYMENT_TOKEN_MAX_AGE

    def create_intent(self, reference: str, amount: Decimal) -> PaymentIntent:
        token = signing.dumps({"ref": reference, "amount": str(amount)}, salt=self.salt)
        logger.info("payment.intent_created", payment_reference=reference, amount=str(amount))
        return PaymentIntent(reference=reference, client_token=token, amount=amount)

    def confirm(self, reference: str, token: str) -> PaymentConfirmation:
        try:
            data = signing.loads(token, salt=self.salt, max_age=self._max_age)
        except signing.BadSignature as exc:
            logger.warning(
                "payment.confirmation_rejected",
                payment_reference=reference,
                reason=type(exc).__name__,
            )
            return PaymentConfirmation(reference=reference, confirmed=False, method=self.method)

        confirmed = data.get("ref") == reference
        if not confirmed:
            logger.warning("payment.reference_mismatch", payment_reference=reference)
        return PaymentConfirmation(reference=reference, confirmed=confirmed, method=self.method)


def get_payment_gateway() -> PaymentGateway:
    return import_string(settings.PAYMENT_GATEWAY)()
