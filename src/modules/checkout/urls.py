"""Checkout URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.checkout.views import CheckoutViewSet

router = DefaultRouter(trailing_slash=True)
router.register("checkout", CheckoutViewSet, basename="checkout")

urlpatterns = router.urls
