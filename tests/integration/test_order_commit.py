"""Integration tests for OrderCommitter against the database.

Covers:
- All-or-nothing: a failure after stock updates leaves no trace.
- Coupon used up between validation and redemption.
- One coupon use per order; usage never passes the cap.
- Outbox rows written with the order and relayed by the Celery task.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import DatabaseError
from django.db.models import F

from modules.carts.models import CartItem
from modules.core.models import EventStatus, OutboxEvent
from modules.core.tasks import relay_outbox_events
from modules.coupons.models import Coupon
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CommitOrderDTO
from modules.orders.exceptions import CommitReconciliationRequired
from modules.orders.models import Order, OrderLine, OrderTrackingEntry
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderStateMachine

pytestmark = pytest.mark.integration


@pytest.fixture()
def basket(shopper, make_product, add_to_cart):
    kurta = make_product(title="Cotton Kurta", price="10.00", stock=10)
    lamp = make_product(title="Brass Lamp", price="45.99", stock=1)
    add_to_cart(shopper, kurta, quantity=3)
    add_to_cart(shopper, lamp, quantity=1)
    return kurta, lamp


def _commit(committer, shopper, paid, coupon_code=None, reference=None):
    return committer.commit(
        CommitOrderDTO(
            user_id=shopper.pk,
            email=shopper.email,
            coupon_code=coupon_code,
            payment=paid(reference),
        )
    )


class TestCommit:
    def test_commit_effects(self, committer, shopper, paid, basket, make_coupon):
        kurta, lamp = basket
        coupon = make_coupon(code="EID25", discount_percent=25)

        order = _commit(committer, shopper, paid, coupon_code="eid25")

        assert order.total_amount == Decimal("56.99")  # 75.99 * 0.75 = 56.9925
        assert order.subtotal == Decimal("75.99")
        assert order.coupon_code == "EID25"
        assert order.coupon_discount_percent == 25
        assert sorted(line.title for line in order.lines.all()) == ["Brass Lamp", "Cotton Kurta"]
        kurta.refresh_from_db()
        lamp.refresh_from_db()
        coupon.refresh_from_db()
        assert (kurta.stock, kurta.is_active) == (7, True)
        assert (lamp.stock, lamp.is_active) == (0, False)
        assert coupon.used_count == 1
        assert not CartItem.objects.filter(user=shopper).exists()

    def test_quote_matches_committed_total(self, committer, shopper, paid, basket, make_coupon):
        make_coupon(code="EID25", discount_percent=25)

        quote = committer.quote(shopper.pk, "EID25")
        order = _commit(committer, shopper, paid, coupon_code="EID25")

        assert quote.total == order.total_amount

    def test_failure_after_stock_update_rolls_everything_back(
        self, committer, shopper, paid, basket, make_coupon, monkeypatch
    ):
        kurta, lamp = basket
        coupon = make_coupon(code="EID25", discount_percent=25)

        def broken_create(self, data):
            raise DatabaseError("disk full")

        monkeypatch.setattr(OrderDjangoRepository, "create", broken_create)

        with pytest.raises(CommitReconciliationRequired):
            _commit(committer, shopper, paid, coupon_code="EID25")

        kurta.refresh_from_db()
        lamp.refresh_from_db()
        coupon.refresh_from_db()
        assert kurta.stock == 10
        assert lamp.stock == 1
        assert lamp.is_active is True
        assert coupon.used_count == 0
        assert CartItem.objects.filter(user=shopper).count() == 2
        assert Order.objects.count() == 0
        assert OrderLine.objects.count() == 0
        assert OrderTrackingEntry.objects.count() == 0
        assert OutboxEvent.objects.count() == 0

    def test_coupon_used_up_after_validation_is_dropped(
        self, committer, shopper, paid, basket, make_coupon, monkeypatch
    ):
        make_coupon(code="LAST", discount_percent=50, max_uses=1)
        ledger = committer._coupons
        validate = ledger.validate

        def validate_then_lose_race(code):
            coupon = validate(code)
            # another checkout takes the last use in between
            Coupon.objects.filter(code="LAST").update(used_count=1)
            return coupon

        monkeypatch.setattr(ledger, "validate", validate_then_lose_race)

        order = _commit(committer, shopper, paid, coupon_code="LAST")

        assert order.total_amount == Decimal("75.99")
        assert order.coupon_code is None
        assert Coupon.objects.get(code="LAST").used_count == 1

    def test_each_order_consumes_one_use(
        self, committer, shopper, paid, make_product, add_to_cart, make_coupon
    ):
        product = make_product(stock=100)
        coupon = make_coupon(code="TWICE", max_uses=2)

        totals = []
        for _ in range(3):
            add_to_cart(shopper, product, quantity=1)
            totals.append(_commit(committer, shopper, paid, coupon_code="TWICE").total_amount)

        coupon.refresh_from_db()
        assert coupon.used_count == 2
        assert totals == [Decimal("9.00"), Decimal("9.00"), Decimal("10.00")]

    def test_items_added_during_checkout_stay_in_cart(
        self, committer, shopper, paid, basket, make_product, add_to_cart, monkeypatch
    ):
        kurta, _ = basket
        shawl = make_product(title="Pashmina Shawl", price="59.99", stock=4)
        cart_repo = committer._cart_repo
        read_lines = cart_repo.lines_for_user

        def read_then_keep_shopping(user_id):
            lines = read_lines(user_id)
            add_to_cart(shopper, shawl, quantity=1)
            CartItem.objects.filter(user=shopper, product=kurta).update(quantity=F("quantity") + 2)
            return lines

        monkeypatch.setattr(cart_repo, "lines_for_user", read_then_keep_shopping)

        order = _commit(committer, shopper, paid)

        assert order.total_amount == Decimal("75.99")
        remaining = {
            item.product_id: item.quantity for item in CartItem.objects.filter(user=shopper)
        }
        assert remaining == {shawl.id: 1, kurta.id: 2}

    def test_replayed_payment_has_no_side_effects(self, committer, shopper, paid, basket):
        kurta, _ = basket
        first = _commit(committer, shopper, paid, reference="pay_same")

        again = _commit(committer, shopper, paid, reference="pay_same")

        assert again.id == first.id
        kurta.refresh_from_db()
        assert kurta.stock == 7


class TestOutbox:
    def test_order_placed_event_written_with_order(self, committer, shopper, paid, basket):
        order = _commit(committer, shopper, paid)

        event = OutboxEvent.objects.get(aggregate_id=str(order.id))
        assert event.event_type == "OrderPlaced"
        assert event.topic == "orders"
        assert event.status == EventStatus.PENDING
        assert event.payload["total_amount"] == "75.99"
        assert event.payload["user_id"] == shopper.pk

    def test_status_change_event_written(self, committer, shopper, paid, basket):
        order = _commit(committer, shopper, paid)

        OrderStateMachine(OrderDjangoRepository()).advance(order.id, OrderStatus.SHIPPED)

        types = list(
            OutboxEvent.objects.filter(aggregate_id=str(order.id))
            .order_by("created_at")
            .values_list("event_type", flat=True)
        )
        assert types == ["OrderPlaced", "OrderStatusChanged"]

    def test_relay_publishes_pending_events(self, committer, shopper, paid, basket):
        _commit(committer, shopper, paid)

        result = relay_outbox_events.delay().get()

        assert result == {"published": 1, "failed": 0}
        assert OutboxEvent.objects.get().status == EventStatus.PUBLISHED

    def test_relay_marks_unknown_events_failed(self):
        OutboxEvent.objects.create(
            event_type="LegacyEvent",
            payload={"aggregate_id": "x"},
            aggregate_id="x",
            topic="orders",
        )

        result = relay_outbox_events()

        event = OutboxEvent.objects.get()
        assert result == {"published": 0, "failed": 1}
        assert event.status == EventStatus.FAILED
        assert event.retry_count == 1
