"""Celery tasks for the core module."""

import structlog
from celery import shared_task
from django.db import transaction

logger = structlog.get_logger(__name__)

OUTBOX_MAX_ATTEMPTS = 5


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = 100) -> dict:
    """Hand pending outbox events to the in-process event bus.

    Rows are locked with ``SKIP LOCKED`` so concurrent workers never
    publish the same event twice.  Failed events are retried until they
    reach ``OUTBOX_MAX_ATTEMPTS``.
    """
    from modules.core.models import EventStatus, OutboxEvent
    from shared.domain.events import DomainEvent
    from shared.infrastructure.bus import event_bus

    published = failed = 0
    with transaction.atomic():
        batch = list(
            OutboxEvent.objects.select_for_update(skip_locked=True)
            .filter(
                status__in=[EventStatus.PENDING, EventStatus.FAILED],
                retry_count__lt=OUTBOX_MAX_ATTEMPTS,
            )
            .order_by("created_at")[:batch_size]
        )
        for outbox_event in batch:
            try:
                event = DomainEvent.from_payload(
                    outbox_event.event_type, outbox_event.payload
                )
                event_bus.publish(event)
            except Exception as exc:
                outbox_event.mark_as_failed(str(exc))
                failed += 1
                logger.error(
                    "outbox.relay_failed",
                    outbox_id=str(outbox_event.id),
                    event_type=outbox_event.event_type,
                    exc_info=True,
                )
                continue
            outbox_event.mark_as_published()
            published += 1

    logger.info("outbox.relayed", published=published, failed=failed)
    return {"published": published, "failed": failed}
