"""Catalog endpoints: products, categories and attributes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse

from .. import schemas
from ..services import ProductService
from .deps import get_product_service, require_catalog_staff
from .responses import success

router = APIRouter(tags=["catalog"])

_service_dependency = Depends(get_product_service)
_staff_only = [Depends(require_catalog_staff)]


def _page(page: int = Query(default=1, ge=1), limit: int = Query(default=10, ge=1, le=100)) -> tuple[int, int]:
    return page, limit


_page_dependency = Depends(_page)


# --- products -----------------------------------------------------------------


@router.post("/products", status_code=status.HTTP_201_CREATED, dependencies=_staff_only)
async def create_product(
    payload: schemas.ProductCreate,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    product = await service.create_product(payload)
    return success(
        "Product created successfully",
        schemas.ProductRead.model_validate(product),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/products")
async def list_products(
    query: schemas.ProductFilter = Depends(),
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    """List products with search, category, price range filters and sorting."""

    return success("Products retrieved successfully", await service.list_products(query))


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    product = await service.get_product(product_id)
    return success("Product retrieved successfully", schemas.ProductRead.model_validate(product))


@router.put("/products/{product_id}", dependencies=_staff_only)
async def update_product(
    product_id: str,
    payload: schemas.ProductUpdate,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    product = await service.update_product(product_id, payload)
    return success("Product updated successfully", schemas.ProductRead.model_validate(product))


@router.delete("/products/{product_id}", dependencies=_staff_only)
async def delete_product(
    product_id: str,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    await service.delete_product(product_id)
    return success("Product deleted successfully")


@router.delete("/products", dependencies=_staff_only)
async def delete_products(
    payload: schemas.IdsRequest,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    count = await service.delete_products(payload.ids)
    return success(f"{count} product(s) deleted successfully", {"count": count})


# --- categories ---------------------------------------------------------------


@router.post("/categories", status_code=status.HTTP_201_CREATED, dependencies=_staff_only)
async def create_category(
    payload: schemas.CategoryCreate,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    category = await service.create_category(payload)
    return success(
        "Category created successfully",
        schemas.CategoryDetail.model_validate(category),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/categories")
async def list_categories(
    paging: tuple[int, int] = _page_dependency,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    page, limit = paging
    return success(
        "Categories retrieved successfully",
        await service.list_categories(page=page, limit=limit),
    )


@router.get("/categories/{category_id}")
async def get_category(
    category_id: str,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    category = await service.get_category(category_id)
    return success(
        "Category retrieved successfully", schemas.CategoryDetail.model_validate(category)
    )


@router.put("/categories/{category_id}", dependencies=_staff_only)
async def update_category(
    category_id: str,
    payload: schemas.CategoryUpdate,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    category = await service.update_category(category_id, payload)
    return success(
        "Category updated successfully", schemas.CategoryDetail.model_validate(category)
    )


@router.delete("/categories/{category_id}", dependencies=_staff_only)
async def delete_category(
    category_id: str,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    await service.delete_category(category_id)
    return success("Category deleted successfully")


@router.delete("/categories", dependencies=_staff_only)
async def delete_categories(
    payload: schemas.IdsRequest,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    count = await service.delete_categories(payload.ids)
    return success(f"{count} category(ies) deleted successfully", {"count": count})


# --- attributes ---------------------------------------------------------------


@router.post("/attributes", status_code=status.HTTP_201_CREATED, dependencies=_staff_only)
async def create_attribute(
    payload: schemas.AttributeCreate,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    attribute = await service.create_attribute(payload)
    return success(
        "Attribute created successfully",
        schemas.AttributeDetail.model_validate(attribute),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/attributes")
async def list_attributes(
    paging: tuple[int, int] = _page_dependency,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    page, limit = paging
    return success(
        "Attributes retrieved successfully",
        await service.list_attributes(page=page, limit=limit),
    )


@router.get("/attributes/{attribute_id}")
async def get_attribute(
    attribute_id: str,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    attribute = await service.get_attribute(attribute_id)
    return success(
        "Attribute retrieved successfully", schemas.AttributeDetail.model_validate(attribute)
    )


@router.put("/attributes/{attribute_id}", dependencies=_staff_only)
async def update_attribute(
    attribute_id: str,
    payload: schemas.AttributeUpdate,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    attribute = await service.update_attribute(attribute_id, payload)
    return success(
        "Attribute updated successfully", schemas.AttributeDetail.model_validate(attribute)
    )


@router.delete("/attributes/{attribute_id}", dependencies=_staff_only)
async def delete_attribute(
    attribute_id: str,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    await service.delete_attribute(attribute_id)
    return success("Attribute deleted successfully")


@router.delete("/attributes", dependencies=_staff_only)
async def delete_attributes(
    payload: schemas.IdsRequest,
    service: ProductService = _service_dependency,
) -> ORJSONResponse:
    count = await service.delete_attributes(payload.ids)
    return success(f"{count} attribute(s) deleted successfully", {"count": count})
