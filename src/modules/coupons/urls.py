"""Back-office URL configuration (mounted under ``api/v1/admin/``)."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.coupons.views import CouponViewSet

router = DefaultRouter(trailing_slash=True)
router.register("coupons", CouponViewSet, basename="admin-coupon")

urlpatterns = router.urls
