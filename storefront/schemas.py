"""Pydantic schemas used for request and response models.

JSON uses camelCase keys; request bodies also accept snake_case names.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RequestSchema(Schema):
    model_config = ConfigDict(extra="forbid")


def dump(model: BaseModel) -> dict[str, Any]:
    """Serialise ``model`` for a JSON response body."""

    return model.model_dump(mode="json", by_alias=True)


# --- Accounts -----------------------------------------------------------------


class RegisterRequest(RequestSchema):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=255)
    name: str = Field(..., min_length=3, max_length=255)
    avatar_url: str | None = None
    redirect_url: HttpUrl | None = None

    @field_validator("name")
    @classmethod
    def _name_has_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Name must not be blank")
        return value.strip()


class LoginRequest(RequestSchema):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=255)


class GoogleLoginRequest(RequestSchema):
    id_token: NonEmptyStr | None = None
    code: NonEmptyStr | None = None

    @model_validator(mode="after")
    def _one_credential(self) -> GoogleLoginRequest:
        if bool(self.id_token) == bool(self.code):
            raise ValueError("Provide exactly one of idToken or code")
        return self


class VerifyEmailRequest(RequestSchema):
    email: EmailStr
    token: NonEmptyStr


class EmailRequest(RequestSchema):
    email: EmailStr
    redirect_url: HttpUrl | None = None


class ResetPasswordRequest(RequestSchema):
    email: EmailStr
    token: NonEmptyStr
    password: str = Field(..., min_length=6, max_length=255)


class ProfileRead(Schema):
    id: str
    first_name: str
    last_name: str
    phone: str | None = None
    bio: str = ""
    birthday: date | None = None


class UserRead(Schema):
    id: str
    email: str
    name: str
    avatar_url: str | None = None
    role: str
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class UserWithProfile(UserRead):
    profile: ProfileRead | None = None


class AuthResult(Schema):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead | None = None


# --- Catalog ------------------------------------------------------------------


class VariantAttributeInput(RequestSchema):
    name: NonEmptyStr
    value: NonEmptyStr


class VariantInput(RequestSchema):
    sku: NonEmptyStr
    price: float = Field(..., ge=0)
    stock: int = Field(default=0, ge=0)
    attributes: list[VariantAttributeInput] = Field(default_factory=list)


class ProductCreate(RequestSchema):
    name: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=10)
    slug: str = Field(..., min_length=3, max_length=255)
    category_id: NonEmptyStr
    media_ids: list[str] = Field(default_factory=list)
    collection_ids: list[str] = Field(default_factory=list)
    variants: list[VariantInput] = Field(..., min_length=1)


class ProductUpdate(RequestSchema):
    name: str | None = Field(default=None, min_length=3, max_length=255)
    description: str | None = Field(default=None, min_length=10)
    slug: str | None = Field(default=None, min_length=3, max_length=255)
    category_id: str | None = None
    media_ids: list[str] | None = None
    collection_ids: list[str] | None = None
    variants: list[VariantInput] | None = None


ProductSort = Literal["newest", "oldest", "price_asc", "price_desc"]


class ProductFilter(Schema):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: str | None = None
    category_id: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    sort: ProductSort = "newest"


class CategoryCreate(RequestSchema):
    name: str = Field(..., min_length=3, max_length=255)
    slug: str = Field(..., min_length=3, max_length=255)
    parent_id: str | None = None


class CategoryUpdate(RequestSchema):
    name: str | None = Field(default=None, min_length=3, max_length=255)
    slug: str | None = Field(default=None, min_length=3, max_length=255)
    parent_id: str | None = None


class AttributeCreate(RequestSchema):
    name: str = Field(..., min_length=1, max_length=255)


class AttributeUpdate(RequestSchema):
    name: str | None = Field(default=None, min_length=1, max_length=255)


class IdsRequest(RequestSchema):
    ids: list[NonEmptyStr] = Field(..., min_length=1)


class CategoryRead(Schema):
    id: str
    name: str
    slug: str
    parent_id: str | None = None
    created_at: datetime
    updated_at: datetime


class CategoryDetail(CategoryRead):
    parent: CategoryRead | None = None
    children: list[CategoryRead] = Field(default_factory=list)


class AttributeRead(Schema):
    id: str
    name: str


class AttributeValueRead(Schema):
    id: str
    value: str
    attribute_id: str


class AttributeDetail(AttributeRead):
    values: list[AttributeValueRead] = Field(default_factory=list)


class VariantAttributeRead(AttributeValueRead):
    attribute: AttributeRead


class VariantRead(Schema):
    id: str
    sku: str
    price: float
    stock_quantity: int
    attribute_values: list[VariantAttributeRead] = Field(default_factory=list)


class MediaRead(Schema):
    id: str
    file_name: str
    url: str
    file_type: str
    size: int
    alt_text: str | None = None
    folder_id: str | None = None
    file_id: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductImageRead(Schema):
    id: str
    display_order: int
    media: MediaRead


class CollectionRead(Schema):
    id: str
    name: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProductSummary(Schema):
    id: str
    name: str
    slug: str
    description: str
    category_id: str
    created_at: datetime
    updated_at: datetime


class ProductRead(ProductSummary):
    category: CategoryRead
    variants: list[VariantRead] = Field(default_factory=list)
    images: list[ProductImageRead] = Field(default_factory=list)
    collections: list[CollectionRead] = Field(default_factory=list)


class PageMeta(Schema):
    total: int
    page: int
    limit: int
    total_pages: int


class ProductPage(Schema):
    data: list[ProductRead]
    meta: PageMeta


class CategoryPage(Schema):
    data: list[CategoryDetail]
    meta: PageMeta


class AttributePage(Schema):
    data: list[AttributeDetail]
    meta: PageMeta


class UserPage(Schema):
    data: list[UserRead]
    meta: PageMeta


# --- Collections --------------------------------------------------------------


class CollectionCreate(RequestSchema):
    name: str = Field(..., min_length=2, max_length=255)
    slug: str = Field(..., min_length=2, max_length=255)
    description: str | None = None
    image_url: HttpUrl | None = None
    is_active: bool = True


class CollectionUpdate(RequestSchema):
    name: str | None = Field(default=None, min_length=2, max_length=255)
    slug: str | None = Field(default=None, min_length=2, max_length=255)
    description: str | None = None
    image_url: HttpUrl | None = None
    is_active: bool | None = None


class AddProductsRequest(RequestSchema):
    product_ids: list[NonEmptyStr] = Field(..., min_length=1)


class CollectionDetail(CollectionRead):
    products: list[ProductSummary] = Field(default_factory=list)


class CollectionPage(Schema):
    data: list[CollectionDetail]
    meta: PageMeta


# --- Media --------------------------------------------------------------------


class MediaFolderCreate(RequestSchema):
    name: NonEmptyStr
    parent_id: str | None = None


class MediaFolderUpdate(RequestSchema):
    id: NonEmptyStr
    name: NonEmptyStr | None = None


class MediaFolderRead(Schema):
    id: str
    name: str
    parent_id: str | None = None
    created_at: datetime
    updated_at: datetime


class MediaFolderDetail(MediaFolderRead):
    media: list[MediaRead] = Field(default_factory=list)
    children: list[MediaFolderRead] = Field(default_factory=list)


class DeleteMediaRequest(RequestSchema):
    id: NonEmptyStr


class MediaPage(Schema):
    items: list[MediaRead]
    total: int
    page: int
    limit: int
    total_pages: int


class DeleteManyResult(Schema):
    count: int
    message: str
