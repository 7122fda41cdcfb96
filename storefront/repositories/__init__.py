"""Database access objects, one per resource."""

from .auth import AuthRepository
from .collections import CollectionRepository
from .media import MediaRepository
from .products import ProductQuery, ProductRepository, VariantData

__all__ = [
    "AuthRepository",
    "CollectionRepository",
    "MediaRepository",
    "ProductQuery",
    "ProductRepository",
    "VariantData",
]
