"""Shared fixtures: shoppers, API clients and catalog/cart/order factories."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Optional

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from modules.carts.models import CartItem
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.checkout.payments import new_payment_reference
from modules.coupons.ledger import CouponLedger
from modules.coupons.models import Coupon
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.orders.constants import ORDER_PLACED_NOTE
from modules.orders.dtos import PaymentConfirmation
from modules.orders.pricing import PricedLine, price_cart
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderCommitter
from modules.products.ledger import InventoryLedger
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle and rate-limit counters live in the cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def shopper():
    return User.objects.create_user(
        username="ayesha", email="ayesha@example.com", password="testpass123"
    )


@pytest.fixture()
def other_shopper():
    return User.objects.create_user(
        username="bilal", email="bilal@example.com", password="testpass123"
    )


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="backoffice",
        email="ops@myshop.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture()
def shopper_client(shopper):
    client = APIClient()
    client.force_authenticate(user=shopper)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    def _make(title: str = "Cotton Kurta", price: str = "10.00", stock: int = 10, **extra):
        extra.setdefault("is_active", stock > 0)
        return Product.objects.create(title=title, price=Decimal(price), stock=stock, **extra)

    return _make


@pytest.fixture()
def make_coupon():
    def _make(
        code: str = "SAVE10",
        discount_percent: int = 10,
        max_uses: int = 100,
        used_count: int = 0,
        expires_in: timedelta = timedelta(days=7),
        **extra,
    ):
        return Coupon.objects.create(
            code=code,
            discount_percent=discount_percent,
            max_uses=max_uses,
            used_count=used_count,
            expires_at=timezone.now() + expires_in,
            **extra,
        )

    return _make


@pytest.fixture()
def add_to_cart():
    def _add(user, product, quantity: int = 1) -> CartItem:
        return CartItem.objects.create(user=user, product=product, quantity=quantity)

    return _add


@pytest.fixture()
def make_order(shopper):
    """Create an order directly through the repository (no stock or coupon effects)."""

    def _make(
        user=None,
        lines=(("Cotton Kurta", "10.00", 3),),
        coupon_code: Optional[str] = None,
        discount_percent: Optional[int] = None,
        payment_reference: Optional[str] = None,
    ):
        user = user or shopper
        quote = price_cart(
            [PricedLine(unit_price=Decimal(price), quantity=qty) for _, price, qty in lines],
            discount_percent,
        )
        return OrderDjangoRepository().create(
            {
                "user_id": user.pk,
                "email": user.email,
                "total_amount": quote.total,
                "coupon_code": coupon_code,
                "coupon_discount_percent": discount_percent,
                "payment_reference": payment_reference,
                "note": ORDER_PLACED_NOTE,
                "lines": [
                    {"title": title, "price": Decimal(price), "quantity": qty}
                    for title, price, qty in lines
                ],
            }
        )

    return _make


# ---------------------------------------------------------------------------
# Order commit
# ---------------------------------------------------------------------------


@pytest.fixture()
def committer() -> OrderCommitter:
    return OrderCommitter(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        inventory=InventoryLedger(ProductDjangoRepository()),
        coupons=CouponLedger(CouponDjangoRepository()),
    )


@pytest.fixture()
def paid():
    """Build a confirmed payment for a fresh (or given) reference."""

    def _paid(reference: Optional[str] = None) -> PaymentConfirmation:
        return PaymentConfirmation(reference=reference or new_payment_reference(), confirmed=True)

    return _paid
