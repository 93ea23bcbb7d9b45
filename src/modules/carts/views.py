"""Cart API views."""

from __future__ import annotations

from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.carts.dtos import AddCartItemDTO
from modules.carts.exceptions import CartItemNotFound
from modules.carts.models import CartItem
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import CartItemSerializer
from modules.carts.services import CartService
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository


class CartViewSet(GenericViewSet):
    queryset = CartItem.objects.none()
    serializer_class = CartItemSerializer
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        lines = self._service.lines(request.user.pk)
        subtotal = sum(
            (line.product.price * line.quantity for line in lines), Decimal("0.00")
        )
        return Response(
            {
                "items": CartItemSerializer(lines, many=True).data,
                "subtotal": str(subtotal),
            }
        )

    @action(detail=False, methods=["post"], url_path="items")
    def add_item(self, request: Request) -> Response:
        """POST /api/v1/cart/items/"""
        try:
            dto = AddCartItemDTO(
                product_id=request.data.get("product_id"),
                quantity=request.data.get("quantity", 1),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            item = self._service.add_item(request.user.pk, dto)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        item = CartItem.objects.select_related("product").get(pk=item.pk)
        return Response(CartItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["delete"], url_path=r"items/(?P<product_id>[^/.]+)")
    def remove_item(self, request: Request, product_id: str | None = None) -> Response:
        """DELETE /api/v1/cart/items/{product_id}/"""
        try:
            self._service.remove_item(request.user.pk, product_id)
        except CartItemNotFound:
            return Response(
                {"detail": "Product is not in the cart."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
