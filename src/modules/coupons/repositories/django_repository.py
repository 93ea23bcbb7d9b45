"""Django ORM implementation of the Coupon repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from modules.coupons.models import Coupon
from modules.coupons.repositories.interfaces import ICouponRepository

logger = structlog.get_logger(__name__)


class CouponDjangoRepository(ICouponRepository):
    def get_by_id(self, id: str) -> Optional[Coupon]:
        try:
            return Coupon.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_code(self, code: str) -> Optional[Coupon]:
        return Coupon.objects.filter(code=code).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Coupon]:
        queryset = Coupon.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Coupon) -> Coupon:
        entity.save()
        logger.info("coupon.saved", coupon_id=str(entity.id), code=entity.code)
        return entity

    def increment_usage(self, code: str, now: datetime) -> bool:
        updated = Coupon.objects.filter(
            code=code,
            is_active=True,
            expires_at__gt=now,
            used_count__lt=F("max_uses"),
        ).update(used_count=F("used_count") + 1, updated_at=now)
        return updated == 1
