"""Product service layer (admin catalog maintenance)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.products.exceptions import ProductNotFound
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for Product use-cases."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        product = Product(
            title=dto.title,
            price=dto.price,
            description=dto.description,
            image_url=dto.image_url,
            stock=dto.stock,
        )
        if dto.is_active is None:
            product.sync_active_flag()
        else:
            product.is_active = dto.is_active
        product = self._repo.save(product)
        logger.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Apply supplied fields.

        A stock change re-derives ``is_active`` unless the same request
        sets ``is_active`` explicitly (admin toggle).

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        for field in ("title", "price", "description", "image_url", "stock"):
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        if dto.is_active is not None:
            product.is_active = dto.is_active
        elif dto.stock is not None:
            product.sync_active_flag()

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id), is_active=product.is_active)
        return product

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")
