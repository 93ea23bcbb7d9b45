from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.coupons.models import Coupon
from modules.orders.constants import ORDER_PLACED_NOTE, OrderStatus
from modules.orders.models import Order
from modules.orders.pricing import PricedLine, price_cart
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderStateMachine
from modules.products.models import Product


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        products = self._seed_products()
        coupons = self._seed_coupons()
        orders_created = self._seed_orders(users, products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"coupons={coupons}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> list:
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", email="admin@myshop.com", password="admin123")
        shoppers = []
        for username in ("ayesha", "bilal", "sana"):
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username, email=f"{username}@example.com", password=f"{username}123"
                )
            shoppers.append(user)
        return shoppers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("Cotton Kurta", Decimal("2499.00")),
            ("Leather Sandals", Decimal("3299.00")),
            ("Pashmina Shawl", Decimal("5999.00")),
            ("Ceramic Tea Set", Decimal("1899.00")),
            ("Handwoven Rug (3x5 ft)", Decimal("12999.00")),
            ("Brass Table Lamp", Decimal("4599.00")),
            ("Embroidered Cushion Cover", Decimal("899.00")),
            ("Onyx Coaster Set", Decimal("749.00")),
            ("Copper Water Bottle", Decimal("1299.00")),
            ("Truck Art Tray", Decimal("1599.00")),
        ]
        for title, price in catalog:
            stock = random.randint(0, 40)
            product, _ = Product.objects.get_or_create(
                title=title,
                defaults={
                    "description": f"{title} from our seasonal collection.",
                    "price": price,
                    "stock": stock,
                    "is_active": stock > 0,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_coupons(self) -> int:
        now = timezone.now()
        seeds = [
            ("WELCOME10", 10, now + timedelta(days=90), 100),
            ("EID25", 25, now + timedelta(days=14), 20),
            ("EXPIRED5", 5, now - timedelta(days=1), 100),
        ]
        created = 0
        for code, percent, expires_at, max_uses in seeds:
            _, was_created = Coupon.objects.get_or_create(
                code=code,
                defaults={
                    "discount_percent": percent,
                    "expires_at": expires_at,
                    "max_uses": max_uses,
                },
            )
            created += int(was_created)
        return created

    def _seed_orders(self, users: list, products: list[Product]) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        repository = OrderDjangoRepository()
        state_machine = OrderStateMachine(order_repository=repository)
        paths = [
            [],
            [OrderStatus.SHIPPED],
            [OrderStatus.SHIPPED, OrderStatus.DELIVERED],
            [OrderStatus.CANCELLED],
        ]

        orders_created = 0
        for _ in range(20):
            user = random.choice(users)
            picked = random.sample(products, k=random.randint(1, 4))
            quantities = [random.randint(1, 3) for _ in picked]
            quote = price_cart(
                [PricedLine(unit_price=p.price, quantity=q) for p, q in zip(picked, quantities)]
            )
            order = repository.create(
                {
                    "user_id": user.pk,
                    "email": user.email,
                    "total_amount": quote.total,
                    "note": ORDER_PLACED_NOTE,
                    "lines": [
                        {
                            "product_id": p.id,
                            "title": p.title,
                            "description": p.description,
                            "image_url": p.image_url,
                            "price": p.price,
                            "quantity": q,
                        }
                        for p, q in zip(picked, quantities)
                    ],
                }
            )
            created_at = timezone.now() - timedelta(days=random.randint(0, 30))
            Order.objects.filter(id=order.id).update(created_at=created_at)
            for status in random.choice(paths):
                state_machine.advance(order.id, status)
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
