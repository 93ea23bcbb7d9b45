"""Integration tests for the invoice download endpoint."""

from __future__ import annotations

import uuid

import pytest
from django.core.files.storage import default_storage

from modules.invoices.storage import InvoiceStorage

pytestmark = pytest.mark.integration


def _url(order_id) -> str:
    return f"/api/v1/orders/{order_id}/invoice/"


class TestInvoiceDownload:
    def test_pdf_for_own_order(self, shopper_client, make_order):
        order = make_order(coupon_code="SAVE10", discount_percent=10)

        response = shopper_client.get(_url(order.id))

        assert response.status_code == 200
        assert response["Content-Type"] == "application/pdf"
        assert response["Content-Disposition"] == f'inline; filename="invoice-{order.id}.pdf"'
        assert response.content.startswith(b"%PDF")

    def test_copy_is_stored_and_reused(self, shopper_client, make_order):
        order = make_order()

        first = shopper_client.get(_url(order.id))

        path = InvoiceStorage().path_for(order.id)
        assert default_storage.exists(path)
        second = shopper_client.get(_url(order.id))
        assert second.content == first.content

    def test_someone_elses_order_is_forbidden(self, shopper_client, other_shopper, make_order):
        order = make_order(user=other_shopper)

        response = shopper_client.get(_url(order.id))

        assert response.status_code == 403
        assert not default_storage.exists(InvoiceStorage().path_for(order.id))

    def test_unknown_order(self, shopper_client):
        assert shopper_client.get(_url(uuid.uuid4())).status_code == 404

    def test_requires_authentication(self, api_client, make_order):
        assert api_client.get(_url(make_order().id)).status_code == 401
