"""Order service layer (Use Cases).

``OrderCommitter`` turns a user's cart into one order together with its
stock and coupon effects; ``OrderStateMachine`` moves committed orders
through their lifecycle; ``OrderQueryService`` serves reads with the
ownership check the API and invoices rely on.

Business rules enforced:
- Payment must be confirmed before anything else happens.
- Inactive or deleted products are dropped from the cart silently.
- A stale coupon never fails checkout; the order is priced without it.
- Stock floors at zero (oversell is tolerated and logged).
- One order consumes exactly one coupon use.
- Stock, coupon, order and cart changes commit or roll back together.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, NoReturn, Optional, TypeVar

import structlog
from django.db import DatabaseError, IntegrityError, OperationalError, transaction

from modules.core.exceptions import ConcurrencyConflict
from modules.orders.constants import (
    ENTITY_UPDATE_MAX_RETRIES,
    ORDER_PLACED_NOTE,
    OrderStatus,
)
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import (
    CommitReconciliationRequired,
    InvalidOrderStatus,
    NothingToOrder,
    OrderAccessDenied,
    OrderNotFound,
    PaymentNotConfirmed,
)
from modules.orders.pricing import PriceQuote, PricedLine, price_cart

if TYPE_CHECKING:
    from modules.carts.models import CartItem
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.coupons.ledger import CouponLedger
    from modules.orders.dtos import CommitOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.ledger import InventoryLedger

logger = structlog.get_logger(__name__)

R = TypeVar("R")


class OrderCommitter:
    """Owns the checkout transaction boundary.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
        inventory: InventoryLedger,
        coupons: CouponLedger,
        max_retries: int = ENTITY_UPDATE_MAX_RETRIES,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository
        self._inventory = inventory
        self._coupons = coupons
        self._max_retries = max_retries

    def commit(self, dto: CommitOrderDTO) -> Order:
        """Create the order for the user's current cart.

        Replaying a payment reference that already produced an order
        returns that order without side effects.

        Raises:
            PaymentNotConfirmed: no confirmed payment was supplied.
            NothingToOrder: no purchasable line is left in the cart.
            ConcurrencyConflict: a stock or coupon update kept failing.
            CommitReconciliationRequired: the database failed after stock
                or coupon updates were issued.
        """
        payment = dto.payment
        if payment is None or not payment.confirmed or not payment.reference:
            raise PaymentNotConfirmed("Payment has not been confirmed.")

        log = logger.bind(user_id=dto.user_id, payment_reference=payment.reference)
        log.info("order.commit.started")

        existing = self._order_repo.get_by_payment_reference(payment.reference)
        if existing:
            log.info("order.commit.replayed", order_id=str(existing.id))
            return existing

        cart_lines = self._cart_repo.lines_for_user(dto.user_id)
        lines = [line for line in cart_lines if line.product.is_purchasable]
        if not lines:
            log.info("order.commit.nothing_to_order")
            raise NothingToOrder("Your cart has no products available for purchase.")

        priced = [PricedLine(unit_price=line.product.price, quantity=line.quantity) for line in lines]
        coupon = self._coupons.validate(dto.coupon_code)
        if dto.coupon_code and coupon is None:
            log.info("order.commit.coupon_dropped", coupon_code=dto.coupon_code)

        side_effects_started = False
        try:
            with transaction.atomic():
                # Lock rows in primary-key order so concurrent commits cannot deadlock.
                for line in sorted(lines, key=lambda item: item.product_id):
                    self._with_retries(
                        "product",
                        line.product_id,
                        lambda line=line: self._inventory.reserve_and_deplete(
                            line.product_id, line.quantity
                        ),
                    )
                    side_effects_started = True

                discount_percent: Optional[int] = None
                coupon_code: Optional[str] = None
                if coupon is not None:
                    redemption = self._with_retries(
                        "coupon", coupon.code, lambda: self._coupons.try_redeem(coupon.code)
                    )
                    if redemption.applied:
                        discount_percent = redemption.discount_percent
                        coupon_code = redemption.code
                    else:
                        log.info("order.commit.coupon_lost_race", coupon_code=coupon.code)

                quote = price_cart(priced, discount_percent)
                order = self._order_repo.create(
                    {
                        "user_id": dto.user_id,
                        "email": dto.email,
                        "total_amount": quote.total,
                        "coupon_code": coupon_code,
                        "coupon_discount_percent": discount_percent,
                        "payment_reference": payment.reference,
                        "payment_method": payment.method,
                        "note": ORDER_PLACED_NOTE,
                        "lines": [self._snapshot(line) for line in lines],
                    }
                )
                # Dropped lines go too; anything added since the read stays.
                self._cart_repo.remove_checked_out(
                    dto.user_id, {line.id: line.quantity for line in cart_lines}
                )
        except IntegrityError as exc:
            # A concurrent commit for the same payment won the unique index.
            existing = self._order_repo.get_by_payment_reference(payment.reference)
            if existing:
                log.info("order.commit.replayed", order_id=str(existing.id))
                return existing
            self._reconciliation_required(log, exc, payment.reference)
        except DatabaseError as exc:
            if not side_effects_started:
                raise
            self._reconciliation_required(log, exc, payment.reference)

        log.info(
            "order.commit.completed",
            order_id=str(order.id),
            total_amount=str(quote.total),
            line_count=len(lines),
            coupon_code=coupon_code,
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    def quote(self, user_id: Any, coupon_code: Optional[str] = None) -> PriceQuote:
        """Price the purchasable part of a cart without side effects."""
        lines = self._purchasable_lines(user_id)
        coupon = self._coupons.validate(coupon_code)
        priced = [PricedLine(unit_price=line.product.price, quantity=line.quantity) for line in lines]
        return price_cart(priced, coupon.discount_percent if coupon else None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _purchasable_lines(self, user_id: Any) -> List[CartItem]:
        return [
            line
            for line in self._cart_repo.lines_for_user(user_id)
            if line.product.is_purchasable
        ]

    def _with_retries(self, entity: str, entity_id: Any, update: Callable[[], R]) -> R:
        for attempt in range(1, self._max_retries + 1):
            try:
                with transaction.atomic():
                    return update()
            except OperationalError as exc:
                logger.warning(
                    "order.commit.entity_retry",
                    entity=entity,
                    entity_id=str(entity_id),
                    attempt=attempt,
                    error=str(exc),
                )
        else:
            raise ConcurrencyConflict(
                f"Could not update {entity} {entity_id} after {self._max_retries} attempts."
            )

    @staticmethod
    def _snapshot(line: CartItem) -> Dict[str, Any]:
        product = line.product
        return {
            "product_id": product.id,
            "title": product.title,
            "description": product.description,
            "image_url": product.image_url,
            "price": product.price,
            "quantity": line.quantity,
        }

    @staticmethod
    def _reconciliation_required(log: Any, exc: Exception, reference: str) -> NoReturn:
        log.error("order.commit.reconciliation_required", error=str(exc))
        raise CommitReconciliationRequired(
            "Order could not be confirmed; it will be checked before you are charged again.",
            payment_reference=reference,
        ) from exc


class OrderStateMachine:
    """Operator-driven status transitions with an append-only trail."""

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    @transaction.atomic
    def advance(
        self,
        order_id: Any,
        new_status: str,
        note: str = "",
        override: bool = False,
    ) -> Order:
        """Move an order to ``new_status``.

        ``override`` lets an admin bypass the transition table; moving
        to the current status is refused either way.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: unknown status or transition not allowed.
        """
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown status {new_status!r}.")

        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=new_status,
        )

        if order.status == new_status:
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(f"Order is already {new_status}.")

        if not order.can_transition_to(new_status):
            if not override:
                log.warning("order.invalid_transition")
                raise InvalidOrderStatus(
                    f"Invalid transition from {order.status} to {new_status}."
                )
            log.warning("order.transition_override")

        old_status = order.status
        order.status = new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=new_status,
                override=override,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_tracking(order, new_status, note or f"Status updated to {new_status}")

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id))


class OrderQueryService:
    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def get_order(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def get_order_for_user(self, order_id: Any, user: Any) -> Order:
        """Raises:
        OrderNotFound: order does not exist.
        OrderAccessDenied: the order belongs to someone else.
        """
        order = self.get_order(order_id)
        if order.user_id != user.pk:
            logger.warning(
                "order.access_denied",
                order_id=str(order_id),
                user_id=user.pk,
            )
            raise OrderAccessDenied("You are not allowed to access this order.")
        return order

    def list_for_user(self, user_id: Any) -> List[Order]:
        return self._order_repo.list_for_user(user_id)

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return self._order_repo.list(filters)
