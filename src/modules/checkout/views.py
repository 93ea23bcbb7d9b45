"""Checkout API views: quote, coupon and the order-commit entry point.

Failures answer with a flash-style ``message`` and a ``redirect`` back
to the checkout page, which is what the storefront client shows.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.checkout.payments import get_payment_gateway, new_payment_reference
from modules.checkout.serializers import ApplyCouponSerializer, ConfirmCheckoutSerializer
from modules.checkout.session import (
    clear_session_coupon,
    get_session_coupon,
    set_session_coupon,
)
from modules.core.exceptions import ConcurrencyConflict
from modules.core.ratelimit import RateLimitedThrottle
from modules.coupons.ledger import CouponLedger
from modules.coupons.models import normalize_code
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.orders.dtos import CommitOrderDTO
from modules.orders.exceptions import (
    CommitReconciliationRequired,
    NothingToOrder,
    PaymentNotConfirmed,
)
from modules.orders.pricing import PriceQuote
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.orders.services import OrderCommitter
from modules.products.ledger import InventoryLedger
from modules.products.repositories.django_repository import ProductDjangoRepository

logger = structlog.get_logger(__name__)

CHECKOUT_PATH = "/checkout"


def _flash(message: str, http_status: int, redirect: str = CHECKOUT_PATH) -> Response:
    return Response({"message": message, "redirect": redirect}, status=http_status)


def _quote_data(quote: PriceQuote, coupon_code: Optional[str]) -> Dict[str, Any]:
    return {
        "subtotal": str(quote.subtotal),
        "coupon_code": coupon_code if quote.has_discount else None,
        "discount_percent": quote.discount_percent,
        "discount_amount": str(quote.discount_amount),
        "total": str(quote.total),
    }


class CheckoutViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._coupons = CouponLedger(CouponDjangoRepository())
        self._committer = OrderCommitter(
            order_repository=OrderDjangoRepository(),
            cart_repository=CartDjangoRepository(),
            inventory=InventoryLedger(ProductDjangoRepository()),
            coupons=self._coupons,
        )

    def get_throttles(self) -> list[BaseThrottle]:
        if self.action == "confirm":
            self.throttle_scope = "checkout"
        elif self.action == "coupon":
            self.throttle_scope = "coupon_apply"
        else:
            self.throttle_scope = None
        throttles = super().get_throttles()
        if self.throttle_scope:
            throttles.append(RateLimitedThrottle())
        return throttles

    def list(self, request: Request) -> Response:
        """GET /api/v1/checkout/

        Prices the purchasable part of the cart and opens a payment
        intent for the total, including a zero total for free items.
        """
        coupon_code = get_session_coupon(request)
        quote = self._committer.quote(request.user.pk, coupon_code)
        data = _quote_data(quote, coupon_code)

        if not quote.is_empty:
            intent = get_payment_gateway().create_intent(new_payment_reference(), quote.total)
            data["payment"] = {
                "reference": intent.reference,
                "client_token": intent.client_token,
                "amount": str(intent.amount),
            }
        else:
            data["payment"] = None
        return Response(data)

    @action(detail=False, methods=["post", "delete"])
    def coupon(self, request: Request) -> Response:
        """POST/DELETE /api/v1/checkout/coupon/"""
        if request.method == "DELETE":
            clear_session_coupon(request)
            return _flash("Coupon removed.", status.HTTP_200_OK)

        serializer = ApplyCouponSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        code = normalize_code(serializer.validated_data["code"])

        coupon = self._coupons.validate(code)
        if coupon is None:
            logger.info("checkout.coupon_rejected", code=code, user_id=request.user.pk)
            return _flash("Invalid or expired coupon.", status.HTTP_400_BAD_REQUEST)

        set_session_coupon(request, coupon.code)
        quote = self._committer.quote(request.user.pk, coupon.code)
        data = _quote_data(quote, coupon.code)
        data.update(
            message=f"Coupon {coupon.code} applied ({coupon.discount_percent}% off).",
            redirect=CHECKOUT_PATH,
        )
        return Response(data)

    @action(detail=False, methods=["post"])
    def confirm(self, request: Request) -> Response:
        """POST /api/v1/checkout/confirm/

        Order-commit entry point, called once the payment provider has
        taken the money.  Resubmitting the same payment returns the
        order created the first time.
        """
        serializer = ConfirmCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        confirmation = get_payment_gateway().confirm(
            data["payment_reference"], data["payment_token"]
        )
        dto = CommitOrderDTO(
            user_id=request.user.pk,
            email=request.user.email or "",
            coupon_code=get_session_coupon(request),
            payment=confirmation,
        )

        try:
            order = self._committer.commit(dto)
        except PaymentNotConfirmed:
            return _flash("Payment could not be confirmed.", status.HTTP_400_BAD_REQUEST)
        except NothingToOrder as exc:
            return _flash(str(exc), status.HTTP_400_BAD_REQUEST)
        except ConcurrencyConflict:
            return _flash(
                "Too many shoppers at once, please try again.",
                status.HTTP_409_CONFLICT,
            )
        except CommitReconciliationRequired as exc:
            return _flash(str(exc), status.HTTP_503_SERVICE_UNAVAILABLE)

        clear_session_coupon(request)
        body = OrderSerializer(order).data
        body.update(message="Order placed successfully.", redirect=f"/orders/{order.id}")
        return Response(body, status=status.HTTP_201_CREATED)
