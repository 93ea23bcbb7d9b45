"""Unit tests for CartService and the cart repository."""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from modules.carts.dtos import AddCartItemDTO
from modules.carts.exceptions import CartItemNotFound
from modules.carts.models import CartItem
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


class TestAddItem:
    def test_adds_line(self, service, shopper, make_product):
        product = make_product()

        item = service.add_item(shopper.pk, AddCartItemDTO(product_id=product.id, quantity=2))

        assert item.quantity == 2
        assert CartItem.objects.filter(user=shopper, product=product).count() == 1

    def test_adding_again_merges_quantities(self, service, shopper, make_product):
        product = make_product()
        service.add_item(shopper.pk, AddCartItemDTO(product_id=product.id, quantity=2))

        item = service.add_item(shopper.pk, AddCartItemDTO(product_id=product.id, quantity=3))

        assert item.quantity == 5
        assert CartItem.objects.filter(user=shopper).count() == 1

    def test_inactive_product_is_refused(self, service, shopper, make_product):
        product = make_product(stock=0)

        with pytest.raises(ProductNotFound):
            service.add_item(shopper.pk, AddCartItemDTO(product_id=product.id))

    def test_deleted_product_is_refused(self, service, shopper, make_product):
        product = make_product()
        product.delete()

        with pytest.raises(ProductNotFound):
            service.add_item(shopper.pk, AddCartItemDTO(product_id=product.id))

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            AddCartItemDTO(product_id=uuid.uuid4(), quantity=0)


class TestRemoveAndClear:
    def test_remove(self, service, shopper, make_product, add_to_cart):
        product = make_product()
        add_to_cart(shopper, product)

        service.remove_item(shopper.pk, product.id)

        assert service.lines(shopper.pk) == []

    def test_remove_missing_line(self, service, shopper):
        with pytest.raises(CartItemNotFound):
            service.remove_item(shopper.pk, uuid.uuid4())

    def test_remove_malformed_id(self, service, shopper):
        with pytest.raises(CartItemNotFound):
            service.remove_item(shopper.pk, "not-a-uuid")

    def test_clear_only_touches_own_cart(
        self, service, shopper, other_shopper, make_product, add_to_cart
    ):
        product = make_product()
        add_to_cart(shopper, product)
        add_to_cart(other_shopper, product)

        assert service.clear(shopper.pk) == 1
        assert len(service.lines(other_shopper.pk)) == 1

    def test_inactive_lines_stay_in_cart(self, service, shopper, make_product, add_to_cart):
        product = make_product(stock=0)
        add_to_cart(shopper, product)

        assert [line.product_id for line in service.lines(shopper.pk)] == [product.id]


class TestRemoveCheckedOut:
    def test_removes_lines_at_the_quantity_read(self, shopper, make_product, add_to_cart):
        first = add_to_cart(shopper, make_product(title="Cotton Kurta"), quantity=2)
        second = add_to_cart(shopper, make_product(title="Brass Lamp"), quantity=1)
        later = add_to_cart(shopper, make_product(title="Pashmina Shawl"), quantity=1)

        deleted = CartDjangoRepository().remove_checked_out(
            shopper.pk, {first.pk: 2, second.pk: 1}
        )

        assert deleted == 2
        assert list(CartItem.objects.filter(user=shopper)) == [later]

    def test_topped_up_line_keeps_the_extra_units(self, shopper, make_product, add_to_cart):
        line = add_to_cart(shopper, make_product(), quantity=5)

        deleted = CartDjangoRepository().remove_checked_out(shopper.pk, {line.pk: 3})

        line.refresh_from_db()
        assert deleted == 0
        assert line.quantity == 2

    def test_other_carts_are_untouched(self, shopper, other_shopper, make_product, add_to_cart):
        theirs = add_to_cart(other_shopper, make_product(), quantity=1)

        assert CartDjangoRepository().remove_checked_out(shopper.pk, {theirs.pk: 1}) == 0
        assert CartItem.objects.filter(pk=theirs.pk).exists()
