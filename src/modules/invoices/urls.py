"""Invoice URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.invoices.views import OrderInvoiceView

urlpatterns = [
    path("orders/<str:order_id>/invoice/", OrderInvoiceView.as_view(), name="order-invoice"),
]
