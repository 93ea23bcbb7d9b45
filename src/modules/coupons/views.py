"""Back-office coupon API views."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.coupons.dtos import CreateCouponDTO
from modules.coupons.exceptions import CouponAlreadyExists
from modules.coupons.models import Coupon
from modules.coupons.repositories.django_repository import CouponDjangoRepository
from modules.coupons.serializers import CouponSerializer
from modules.coupons.services import CouponService


class CouponViewSet(GenericViewSet):
    queryset = Coupon.objects.none()
    serializer_class = CouponSerializer
    permission_classes = [IsAdminUser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CouponService(repository=CouponDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/admin/coupons/"""
        page = self.paginate_queryset(self._service.list_coupons())
        return self.get_paginated_response(CouponSerializer(page, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/admin/coupons/

        ``max_uses`` defaults to 100 when omitted.
        """
        data = request.data
        payload = {
            "code": data.get("code", ""),
            "discount_percent": data.get("discount_percent"),
            "expires_at": data.get("expires_at"),
        }
        if data.get("max_uses") not in (None, ""):
            payload["max_uses"] = data.get("max_uses")
        try:
            dto = CreateCouponDTO(**payload)
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            coupon = self._service.create_coupon(dto)
        except CouponAlreadyExists as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(CouponSerializer(coupon).data, status=status.HTTP_201_CREATED)
