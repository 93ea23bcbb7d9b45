"""Checkout input serializers."""

from __future__ import annotations

from rest_framework import serializers


class ApplyCouponSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=64, trim_whitespace=True)


class ConfirmCheckoutSerializer(serializers.Serializer):
    """Payment-provider callback data posted by the client after paying."""

    payment_reference = serializers.CharField(max_length=255)
    payment_token = serializers.CharField()
