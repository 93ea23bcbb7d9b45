"""Order DRF serializers (read side).

Business logic lives in the Service Layer, which receives Pydantic
DTOs from ``dtos.py``; these serializers only shape responses.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderLine, OrderTrackingEntry


class OrderLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderLine
        fields = [
            "id",
            "product_id",
            "title",
            "description",
            "image_url",
            "price",
            "quantity",
            "line_total",
        ]
        read_only_fields = fields


class TrackingEntrySerializer(serializers.ModelSerializer):
    timestamp = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = OrderTrackingEntry
        fields = ["status", "note", "timestamp"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested lines and tracking."""

    lines = OrderLineSerializer(many=True, read_only=True)
    tracking_history = TrackingEntrySerializer(
        source="tracking_entries", many=True, read_only=True
    )
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    discount_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "email",
            "status",
            "subtotal",
            "coupon_code",
            "coupon_discount_percent",
            "discount_amount",
            "total_amount",
            "payment_method",
            "created_at",
            "updated_at",
            "lines",
            "tracking_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "email",
            "status",
            "total_amount",
            "coupon_code",
            "created_at",
        ]
        read_only_fields = fields
