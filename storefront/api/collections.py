"""Collection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse

from .. import schemas
from ..services import CollectionService
from .deps import get_collection_service, require_catalog_staff
from .responses import success

router = APIRouter(prefix="/collections", tags=["collections"])

_service_dependency = Depends(get_collection_service)
_staff_only = [Depends(require_catalog_staff)]


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=_staff_only)
async def create_collection(
    payload: schemas.CollectionCreate,
    service: CollectionService = _service_dependency,
) -> ORJSONResponse:
    collection = await service.create(payload)
    return success(
        "Collection created successfully",
        schemas.CollectionDetail.model_validate(collection),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("")
async def list_collections(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: CollectionService = _service_dependency,
) -> ORJSONResponse:
    return success(
        "Collections retrieved successfully", await service.list(page=page, limit=limit)
    )


@router.get("/{collection_id}")
async def get_collection(
    collection_id: str,
    service: CollectionService = _service_dependency,
) -> ORJSONResponse:
    collection = await service.get(collection_id)
    return success(
        "Collection retrieved successfully",
        schemas.CollectionDetail.model_validate(collection),
    )


@router.put("/{collection_id}", dependencies=_staff_only)
async def update_collection(
    collection_id: str,
    payload: schemas.CollectionUpdate,
    service: CollectionService = _service_dependency,
) -> ORJSONResponse:
    collection = await service.update(collection_id, payload)
    return success(
        "Collection updated successfully",
        schemas.CollectionDetail.model_validate(collection),
    )


@router.delete("/{collection_id}", dependencies=_staff_only)
async def delete_collection(
    collection_id: str,
    service: CollectionService = _service_dependency,
) -> ORJSONResponse:
    await service.delete(collection_id)
    return success("Collection deleted successfully")


@router.post("/{collection_id}/products", dependencies=_staff_only)
async def add_products(
    collection_id: str,
    payload: schemas.AddProductsRequest,
    service: CollectionService = _service_dependency,
) -> ORJSONResponse:
    """Attach products to a collection; existing links are left alone."""

    collection = await service.add_products(collection_id, payload.product_ids)
    return success(
        "Products added to collection successfully",
        schemas.CollectionDetail.model_validate(collection),
    )
