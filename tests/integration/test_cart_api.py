"""Integration tests for the cart API."""

from __future__ import annotations

import uuid

import pytest

from modules.carts.models import CartItem

pytestmark = pytest.mark.integration

URL = "/api/v1/cart/"
ITEMS_URL = "/api/v1/cart/items/"


class TestCart:
    def test_empty_cart(self, shopper_client):
        response = shopper_client.get(URL)

        assert response.status_code == 200
        assert response.data == {"items": [], "subtotal": "0.00"}

    def test_add_and_view(self, shopper_client, make_product):
        product = make_product(title="Brass Lamp", price="45.99")

        added = shopper_client.post(
            ITEMS_URL, {"product_id": str(product.id), "quantity": 2}, format="json"
        )
        response = shopper_client.get(URL)

        assert added.status_code == 201
        assert added.data["line_total"] == "91.98"
        assert response.data["subtotal"] == "91.98"
        assert response.data["items"][0]["product"]["title"] == "Brass Lamp"

    def test_adding_twice_merges(self, shopper, shopper_client, make_product):
        product = make_product()

        shopper_client.post(ITEMS_URL, {"product_id": str(product.id)}, format="json")
        shopper_client.post(ITEMS_URL, {"product_id": str(product.id), "quantity": 2}, format="json")

        assert CartItem.objects.get(user=shopper).quantity == 3

    def test_unavailable_product(self, shopper_client, make_product):
        product = make_product(stock=0)

        response = shopper_client.post(ITEMS_URL, {"product_id": str(product.id)}, format="json")

        assert response.status_code == 404

    def test_bad_quantity(self, shopper_client, make_product):
        product = make_product()

        response = shopper_client.post(
            ITEMS_URL, {"product_id": str(product.id), "quantity": 0}, format="json"
        )

        assert response.status_code == 400

    def test_remove(self, shopper, shopper_client, make_product, add_to_cart):
        product = make_product()
        add_to_cart(shopper, product)

        response = shopper_client.delete(f"{ITEMS_URL}{product.id}/")

        assert response.status_code == 204
        assert not CartItem.objects.filter(user=shopper).exists()

    def test_remove_missing(self, shopper_client):
        assert shopper_client.delete(f"{ITEMS_URL}{uuid.uuid4()}/").status_code == 404

    def test_carts_are_private(self, shopper_client, other_shopper, make_product, add_to_cart):
        add_to_cart(other_shopper, make_product())

        assert shopper_client.get(URL).data["items"] == []
