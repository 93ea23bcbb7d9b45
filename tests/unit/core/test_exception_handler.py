"""Unit tests for the standard error envelope."""

from __future__ import annotations

import pytest
from rest_framework import exceptions

from modules.core.exception_handler import standard_exception_handler
from modules.coupons.exceptions import CouponNotFound
from modules.invoices.exceptions import InvoiceRenderingError
from modules.orders.exceptions import (
    CommitReconciliationRequired,
    InvalidOrderStatus,
    OrderAccessDenied,
)

pytestmark = pytest.mark.unit


class TestDrfExceptions:
    def test_validation_errors_are_flattened_per_field(self):
        exc = exceptions.ValidationError({"code": ["This field is required."]})

        response = standard_exception_handler(exc, {})

        assert response.status_code == 400
        assert response.data["type"] == "validation_error"
        assert response.data["errors"] == [
            {"code": "invalid", "detail": "This field is required.", "attr": "code"}
        ]

    def test_nested_fields_use_dotted_attr(self):
        exc = exceptions.ValidationError({"payment": {"reference": ["Too long."]}})

        response = standard_exception_handler(exc, {})

        assert response.data["errors"][0]["attr"] == "payment.reference"
        assert response.data["errors"][0]["detail"] == "Too long."

    def test_authentication_failure(self):
        response = standard_exception_handler(exceptions.NotAuthenticated(), {})

        assert response.status_code == 401
        assert response.data["type"] == "client_error"
        assert response.data["errors"][0]["code"] == "not_authenticated"
        assert response.data["errors"][0]["attr"] is None


class TestDomainExceptions:
    @pytest.mark.parametrize(
        ("exc", "status_code", "code"),
        [
            (InvalidOrderStatus("bad move"), 400, "invalid"),
            (CouponNotFound("no coupon"), 404, "not_found"),
            (OrderAccessDenied("not yours"), 403, "permission_denied"),
            (CommitReconciliationRequired("check me"), 503, "reconciliation_required"),
            (InvoiceRenderingError("no font"), 500, "rendering_failed"),
        ],
    )
    def test_domain_errors_map_by_kind(self, exc, status_code, code):
        response = standard_exception_handler(exc, {})

        assert response.status_code == status_code
        assert response.data["errors"] == [{"code": code, "detail": str(exc), "attr": None}]

    def test_unrelated_exception_is_left_to_django(self):
        assert standard_exception_handler(RuntimeError("boom"), {}) is None
