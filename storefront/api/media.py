"""Media library endpoints: CDN files and folders."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import ORJSONResponse

from .. import schemas
from ..services import IncomingFile, MediaFolderService, MediaService
from ..utils.media_types import MAX_UPLOAD_BYTES
from .deps import get_media_folder_service, get_media_service, require_catalog_staff
from .responses import success

router = APIRouter(
    prefix="/media-file",
    tags=["media"],
    dependencies=[Depends(require_catalog_staff)],
)
folder_router = APIRouter(
    prefix="/media-folder",
    tags=["media"],
    dependencies=[Depends(require_catalog_staff)],
)

_service_dependency = Depends(get_media_service)
_folder_service_dependency = Depends(get_media_folder_service)


async def _read_upload(upload: UploadFile) -> IncomingFile:
    # One byte past the limit is enough to reject oversize files
    content = await upload.read(MAX_UPLOAD_BYTES + 1)
    await upload.close()
    return IncomingFile(
        file_name=upload.filename or "upload",
        content_type=(upload.content_type or "application/octet-stream").lower(),
        content=content,
    )


@router.post("/upload-single", status_code=status.HTTP_201_CREATED)
async def upload_single(
    file: UploadFile | None = File(default=None),
    folder_id: str | None = Form(default=None, alias="folderId"),
    alt_text: str | None = Form(default=None, alias="altText"),
    service: MediaService = _service_dependency,
) -> ORJSONResponse:
    incoming = await _read_upload(file) if file is not None else None
    record = await service.upload_single(incoming, folder_id=folder_id, alt_text=alt_text)
    return success(
        "File uploaded successfully",
        schemas.MediaRead.model_validate(record),
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/upload-multiple", status_code=status.HTTP_201_CREATED)
async def upload_multiple(
    files: list[UploadFile] | None = File(default=None),
    folder_id: str | None = Form(default=None, alias="folderId"),
    service: MediaService = _service_dependency,
) -> ORJSONResponse:
    incoming = [await _read_upload(item) for item in files or []]
    records = await service.upload_multiple(incoming, folder_id=folder_id)
    return success(
        "Files uploaded successfully",
        [schemas.MediaRead.model_validate(record) for record in records],
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/get-media")
async def get_media(
    folder_id: str | None = Query(default=None, alias="folderId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    service: MediaService = _service_dependency,
) -> ORJSONResponse:
    return success(
        "Media retrieved successfully",
        await service.list_media(folder_id=folder_id, page=page, limit=limit),
    )


@router.delete("/delete-single")
async def delete_single(
    payload: schemas.DeleteMediaRequest,
    service: MediaService = _service_dependency,
) -> ORJSONResponse:
    await service.delete_single(payload.id)
    return success("File deleted successfully")


@router.delete("/delete-multiple")
async def delete_multiple(
    payload: schemas.IdsRequest,
    service: MediaService = _service_dependency,
) -> ORJSONResponse:
    result = await service.delete_multiple(payload.ids)
    return success(result.message, result)


@folder_router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_folder(
    payload: schemas.MediaFolderCreate,
    service: MediaFolderService = _folder_service_dependency,
) -> ORJSONResponse:
    folder = await service.create(payload)
    return success(
        "Folder created successfully",
        schemas.MediaFolderRead.model_validate(folder),
        status_code=status.HTTP_201_CREATED,
    )


@folder_router.get("/folder-getAll")
async def list_folders(
    service: MediaFolderService = _folder_service_dependency,
) -> ORJSONResponse:
    folders = await service.list()
    return success(
        "Folders retrieved successfully",
        [schemas.MediaFolderDetail.model_validate(folder) for folder in folders],
    )


@folder_router.put("/folder-update")
async def update_folder(
    payload: schemas.MediaFolderUpdate,
    service: MediaFolderService = _folder_service_dependency,
) -> ORJSONResponse:
    folder = await service.update(payload)
    return success("Folder updated successfully", schemas.MediaFolderRead.model_validate(folder))


@folder_router.delete("/delete/{folder_id}")
async def delete_folder(
    folder_id: str,
    service: MediaFolderService = _folder_service_dependency,
) -> ORJSONResponse:
    await service.delete(folder_id)
    return success("Folder deleted successfully")
