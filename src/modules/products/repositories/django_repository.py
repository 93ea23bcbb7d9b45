"""Django ORM implementation of the Product repository.

Methods return ``None`` instead of raising when an entity is missing;
the Service Layer decides how to translate that.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Case, F, Value, When
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product; ``None`` for missing or malformed IDs."""
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), stock=entity.stock)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    def deplete_stock(self, id: Any, quantity: int) -> Optional[int]:
        """Single conditional UPDATE; the row lock lasts until the caller commits.

        ``is_active`` is assigned before ``stock`` because MySQL evaluates
        single-table assignments left to right; both expressions must see
        the pre-update stock.
        """
        updated = Product.objects.filter(id=id).update(
            is_active=Case(
                When(stock__gt=quantity, then=Value(True)),
                default=Value(False),
            ),
            stock=Case(
                When(stock__gt=quantity, then=F("stock") - quantity),
                default=Value(0),
            ),
            updated_at=timezone.now(),
        )
        if not updated:
            return None
        return Product.objects.filter(id=id).values_list("stock", flat=True).first()
