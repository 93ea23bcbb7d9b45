"""Invoice download view."""

from __future__ import annotations

from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.invoices.exceptions import InvoiceRenderingError
from modules.invoices.renderer import InvoiceRenderer
from modules.invoices.services import InvoiceService
from modules.invoices.storage import InvoiceStorage
from modules.orders.exceptions import OrderAccessDenied, OrderNotFound
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderQueryService


class OrderInvoiceView(APIView):
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = InvoiceService(
            queries=OrderQueryService(order_repository=OrderDjangoRepository()),
            renderer=InvoiceRenderer(),
            storage=InvoiceStorage(),
        )

    def get(self, request: Request, order_id: str) -> HttpResponse:
        """GET /api/v1/orders/{order_id}/invoice/"""
        try:
            document = self._service.get_invoice(order_id, request.user)
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
        except InvoiceRenderingError:
            return Response(
                {"detail": "Invoice could not be generated."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        response = HttpResponse(document.content, content_type=document.content_type)
        response["Content-Disposition"] = f'inline; filename="{document.filename}"'
        return response
