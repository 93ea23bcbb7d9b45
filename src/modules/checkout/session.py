"""Checkout state kept in the shopper's session."""

from __future__ import annotations

from typing import Optional

from rest_framework.request import Request

SESSION_COUPON_KEY = "checkout_coupon_code"


def get_session_coupon(request: Request) -> Optional[str]:
    return request.session.get(SESSION_COUPON_KEY)


def set_session_coupon(request: Request, code: str) -> None:
    request.session[SESSION_COUPON_KEY] = code


def clear_session_coupon(request: Request) -> None:
    request.session.pop(SESSION_COUPON_KEY, None)
