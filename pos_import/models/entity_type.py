from __future__ import annotations

from enum import Enum

"""EntityType enum for the bulk import tool.

The closed set of import targets. Every public entry point accepts either an
EntityType member or its string tag and normalizes through EntityType.parse().
"""

__all__ = [
    "EntityType",
    "UnknownEntityType",
]


class UnknownEntityType(ValueError):
    """Raised when an import type tag is not one of the supported entity types."""

    def __init__(self, tag: object) -> None:
        super().__init__(f'Tipo de importación "{tag}" no soportado')
        self.tag = tag


class EntityType(Enum):
    """Import target.

    - PRODUCTS: product catalog (create or update by SKU)
    - STOCK: absolute stock quantity per product and location
    - PRICES: price/cost/margin updates for existing products
    - CUSTOMERS: customers (tax id, then name)
    - SUPPLIERS: suppliers (tax id, then name)
    """
    PRODUCTS = "products"
    STOCK = "stock"
    PRICES = "prices"
    CUSTOMERS = "customers"
    SUPPLIERS = "suppliers"

    @classmethod
    def parse(cls, tag: EntityType | str) -> EntityType:
        if isinstance(tag, EntityType):
            return tag
        if isinstance(tag, str):
            try:
                return cls(tag.strip().lower())
            except ValueError:
                pass
        raise UnknownEntityType(tag)

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def cache_tags(self) -> tuple[str, ...]:
        """Read-cache tags a caller should invalidate after importing this type."""
        return _CACHE_TAGS[self]


_LABELS = {
    EntityType.PRODUCTS: "Productos",
    EntityType.STOCK: "Stock",
    EntityType.PRICES: "Precios",
    EntityType.CUSTOMERS: "Clientes",
    EntityType.SUPPLIERS: "Proveedores",
}

# stock changes surface through the products listing
_CACHE_TAGS = {
    EntityType.PRODUCTS: ("products",),
    EntityType.STOCK: ("products",),
    EntityType.PRICES: ("products",),
    EntityType.CUSTOMERS: ("customers",),
    EntityType.SUPPLIERS: ("suppliers",),
}
