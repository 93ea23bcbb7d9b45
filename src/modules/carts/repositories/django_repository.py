"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, List, Mapping

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.carts.models import CartItem
from modules.carts.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    def lines_for_user(self, user_id: Any) -> List[CartItem]:
        return list(
            CartItem.objects.select_related("product")
            .filter(user_id=user_id)
            .order_by("created_at")
        )

    @transaction.atomic
    def add(self, user_id: Any, product_id: Any, quantity: int) -> CartItem:
        item, created = CartItem.objects.get_or_create(
            user_id=user_id,
            product_id=product_id,
            defaults={"quantity": quantity},
        )
        if not created:
            CartItem.objects.filter(pk=item.pk).update(
                quantity=F("quantity") + quantity,
                updated_at=timezone.now(),
            )
            item.refresh_from_db()
        return item

    def remove(self, user_id: Any, product_id: Any) -> bool:
        try:
            deleted, _ = CartItem.objects.filter(
                user_id=user_id, product_id=product_id
            ).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def clear(self, user_id: Any) -> int:
        deleted, _ = CartItem.objects.filter(user_id=user_id).delete()
        logger.info("cart.cleared", user_id=str(user_id), lines=deleted)
        return deleted

    def remove_checked_out(self, user_id: Any, quantities: Mapping[Any, int]) -> int:
        deleted_lines = 0
        for line_id, quantity in quantities.items():
            line = CartItem.objects.filter(pk=line_id, user_id=user_id)
            deleted, _ = line.filter(quantity__lte=quantity).delete()
            if deleted:
                deleted_lines += 1
                continue
            # topped up after checkout read it
            line.filter(quantity__gt=quantity).update(
                quantity=F("quantity") - quantity,
                updated_at=timezone.now(),
            )
        logger.info(
            "cart.checked_out",
            user_id=str(user_id),
            lines=len(quantities),
            deleted=deleted_lines,
        )
        return deleted_lines
