"""Domain-specific SQLAlchemy model package."""

from ..database import Base

from .auth_tokens import RefreshToken
from .catalog import (
    Attribute,
    AttributeValue,
    AttributeValueToVariant,
    Category,
    Product,
    ProductImage,
    ProductVariant,
)
from .collections import Collection, ProductCollection
from .media import DEFAULT_FOLDER_NAME, Media, MediaFolder, MediaType
from .users import Profile, User, UserRole

__all__ = [
    "Attribute",
    "AttributeValue",
    "AttributeValueToVariant",
    "Base",
    "Category",
    "Collection",
    "DEFAULT_FOLDER_NAME",
    "Media",
    "MediaFolder",
    "MediaType",
    "Product",
    "ProductCollection",
    "ProductImage",
    "ProductVariant",
    "Profile",
    "RefreshToken",
    "User",
    "UserRole",
]
