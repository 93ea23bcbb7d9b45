"""Order API views.

Customers read their own orders; the back office lists every order and
moves them through the status machine.  Domain exceptions are caught
and translated into HTTP status codes.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.orders.dtos import AdvanceStatusDTO
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderAccessDenied,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer, OrderSerializer
from modules.orders.services import OrderQueryService, OrderStateMachine


class OrderViewSet(GenericViewSet):
    """The signed-in user's orders."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._queries = OrderQueryService(order_repository=OrderDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/"""
        page = self.paginate_queryset(self._queries.list_for_user(request.user.pk))
        return self.get_paginated_response(OrderListSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._queries.get_order_for_user(pk, request.user)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except OrderAccessDenied as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_403_FORBIDDEN,
            )
        return Response(OrderSerializer(order).data)


class AdminOrderViewSet(GenericViewSet):
    """Back-office order list and status updates."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    permission_classes = [IsAdminUser]
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = OrderDjangoRepository()
        self._state_machine = OrderStateMachine(order_repository=self._repository)

    def get_queryset(self):
        return self._repository.queryset()

    def list(self, request: Request) -> Response:
        """GET /api/v1/admin/orders/

        Filters: ``status``, ``user``, ``email``, ``start_date``,
        ``end_date``, ``min_total``, ``max_total``.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(OrderListSerializer(page, many=True).data)

    @action(detail=True, methods=["patch"], url_path="status")
    def advance_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/admin/orders/{pk}/status/

        Body: ``status``, optional ``note`` and ``override``.
        """
        try:
            dto = AdvanceStatusDTO(
                status=request.data.get("status", ""),
                note=request.data.get("note", "") or "",
                override=request.data.get("override", False),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            order = self._state_machine.advance(
                pk,
                dto.status,
                note=dto.note,
                override=dto.override,
            )
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidOrderStatus as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(OrderSerializer(order).data)
