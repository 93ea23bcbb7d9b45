"""Coupon domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import DomainValidationError, NotFoundError


class CouponNotFound(NotFoundError):
    """No coupon with the given code."""


class CouponAlreadyExists(DomainValidationError):
    """A coupon with the same (normalised) code already exists."""
