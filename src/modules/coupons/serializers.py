"""Coupon DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.coupons.models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    remaining_uses = serializers.IntegerField(read_only=True)
    is_redeemable = serializers.SerializerMethodField()

    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "discount_percent",
            "expires_at",
            "max_uses",
            "used_count",
            "remaining_uses",
            "is_active",
            "is_redeemable",
            "created_at",
        ]
        read_only_fields = fields

    def get_is_redeemable(self, obj: Coupon) -> bool:
        return obj.is_redeemable()
