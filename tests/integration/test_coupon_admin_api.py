"""Integration tests for the back-office coupon API."""

from __future__ import annotations

import pytest

from modules.coupons.models import Coupon

pytestmark = pytest.mark.integration

URL = "/api/v1/admin/coupons/"


def _payload(**overrides):
    payload = {
        "code": "eid25",
        "discount_percent": 25,
        "expires_at": "2030-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


class TestCreateCoupon:
    def test_create(self, staff_client):
        response = staff_client.post(URL, _payload(), format="json")

        assert response.status_code == 201
        assert response.data["code"] == "EID25"
        assert response.data["max_uses"] == 100
        assert response.data["used_count"] == 0
        assert response.data["remaining_uses"] == 100
        assert response.data["is_redeemable"] is True

    def test_explicit_max_uses(self, staff_client):
        response = staff_client.post(URL, _payload(max_uses=3), format="json")

        assert response.status_code == 201
        assert Coupon.objects.get(code="EID25").max_uses == 3

    def test_duplicate_code(self, staff_client, make_coupon):
        make_coupon(code="EID25")

        response = staff_client.post(URL, _payload(code=" Eid25 "), format="json")

        assert response.status_code == 400
        assert Coupon.objects.count() == 1

    @pytest.mark.parametrize("percent", [-1, 101, None])
    def test_invalid_discount(self, staff_client, percent):
        response = staff_client.post(URL, _payload(discount_percent=percent), format="json")

        assert response.status_code == 400
        assert not Coupon.objects.exists()

    def test_empty_code(self, staff_client):
        response = staff_client.post(URL, _payload(code="   "), format="json")

        assert response.status_code == 400


class TestListCoupons:
    def test_list_is_paginated(self, staff_client, make_coupon):
        make_coupon(code="SAVE10")
        make_coupon(code="EID25", discount_percent=25)

        response = staff_client.get(URL)

        assert response.status_code == 200
        assert response.data["count"] == 2
        assert {row["code"] for row in response.data["results"]} == {"SAVE10", "EID25"}


class TestPermissions:
    def test_shopper_is_forbidden(self, shopper_client):
        assert shopper_client.get(URL).status_code == 403
        assert shopper_client.post(URL, _payload(), format="json").status_code == 403

    def test_anonymous_is_unauthorized(self, api_client):
        assert api_client.get(URL).status_code == 401
