"""Django ORM implementation of the Order repository.

Domain events collected on the aggregate are written to the outbox in
the caller's transaction, so an order and its events commit together.

Concurrency control on status updates uses ``select_for_update()``.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.events import OrderPlaced
from modules.orders.models import Order, OrderLine, OrderTrackingEntry
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            user_id=data["user_id"],
            email=data.get("email", ""),
            total_amount=data["total_amount"],
            coupon_code=data.get("coupon_code"),
            coupon_discount_percent=data.get("coupon_discount_percent"),
            payment_reference=data.get("payment_reference"),
        )
        if data.get("payment_method"):
            order.payment_method = data["payment_method"]
        order.save()

        lines = data.get("lines", [])
        for line_data in lines:
            OrderLine(
                order=order,
                product_id=line_data.get("product_id"),
                title=line_data["title"],
                description=line_data.get("description", ""),
                image_url=line_data.get("image_url", ""),
                price=line_data["price"],
                quantity=line_data["quantity"],
            ).save()

        self.add_tracking(order, OrderStatus.PENDING, data["note"])

        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                user_id=order.user_id,
                total_amount=str(order.total_amount),
                coupon_code=order.coupon_code,
            )
        )
        self._write_outbox(order)

        logger.bind(order_id=str(order.id), line_count=len(lines)).info("order.created")
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet:
        return Order.objects.select_related("user").prefetch_related(
            "lines", "tracking_entries"
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        return self._base_queryset().filter(payment_reference=reference).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_user(self, user_id: Any) -> List[Order]:
        return list(self._base_queryset().filter(user_id=user_id))

    def queryset(self) -> QuerySet:
        return Order.objects.select_related("user").order_by("-created_at", "-id")

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and flush its pending events to the outbox."""
        entity.save()
        count = self._write_outbox(entity)
        logger.info("order.saved", order_id=str(entity.id), event_count=count)
        return entity

    def add_tracking(self, order: Order, status: str, note: str) -> OrderTrackingEntry:
        entry = OrderTrackingEntry.objects.create(order=order, status=status, note=note)
        logger.info(
            "order.tracking_added",
            order_id=str(order.id),
            status=status,
        )
        return entry

    def _write_outbox(self, entity: Order) -> int:
        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_serialize_event_payload(event),
                topic=OUTBOX_TOPIC,
            )
        entity.clear_domain_events()
        return len(events)


def _serialize_event_payload(event: Any) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
