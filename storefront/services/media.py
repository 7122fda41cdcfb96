"""Media library: CDN uploads, deletions and folders."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .. import models, schemas
from ..errors import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    UnsupportedMediaTypeError,
)
from ..providers.imagekit import CdnUpload, ImageKitClient
from ..repositories import MediaRepository
from ..utils.external import call_external
from ..utils.media_types import ALLOWED_UPLOAD_TYPES, MAX_UPLOAD_BYTES, to_media_type

logger = logging.getLogger("storefront.media")

_DATASET = "storefront-api.media"


@dataclass(frozen=True, slots=True)
class IncomingFile:
    """An uploaded file read into memory."""

    file_name: str
    content_type: str
    content: bytes


def validate_upload(file: IncomingFile) -> None:
    if file.content_type not in ALLOWED_UPLOAD_TYPES:
        raise UnsupportedMediaTypeError()
    if len(file.content) > MAX_UPLOAD_BYTES:
        raise BadRequestError(
            f"File {file.file_name} exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit."
        )


class MediaService:
    def __init__(self, repo: MediaRepository, cdn: ImageKitClient) -> None:
        self.repo = repo
        self.cdn = cdn

    async def resolve_folder(self, folder_id: str | None) -> models.MediaFolder:
        """Return the requested folder, or the default folder when none is given."""

        if folder_id:
            folder = await self.repo.get_folder(folder_id)
            if folder is None:
                raise NotFoundError("Folder not found")
            return folder
        folder = await self.repo.find_folder(models.DEFAULT_FOLDER_NAME, None)
        if folder is None:
            folder = await self.repo.save_folder(
                models.MediaFolder(name=models.DEFAULT_FOLDER_NAME)
            )
        return folder

    async def _upload(self, file: IncomingFile) -> CdnUpload:
        return await call_external(
            "imagekit",
            self.cdn.upload(
                content=file.content,
                file_name=file.file_name,
                content_type=file.content_type,
            ),
            message="File upload failed",
        )

    def _record(
        self,
        file: IncomingFile,
        upload: CdnUpload,
        folder: models.MediaFolder,
        alt_text: str | None = None,
    ) -> models.Media:
        return models.Media(
            file_name=file.file_name,
            url=upload.url,
            file_type=to_media_type(file.content_type).value,
            size=len(file.content),
            alt_text=alt_text,
            folder_id=folder.id,
            file_id=upload.file_id,
        )

    async def upload_single(
        self,
        file: IncomingFile | None,
        *,
        folder_id: str | None = None,
        alt_text: str | None = None,
    ) -> models.Media:
        if file is None:
            raise BadRequestError("No file uploaded.")
        validate_upload(file)
        folder = await self.resolve_folder(folder_id)
        upload = await self._upload(file)
        (record,) = await self.repo.add_media([self._record(file, upload, folder, alt_text)])
        logger.info(
            "Media uploaded",
            extra={
                "event_dataset": _DATASET,
                "event_action": "media_uploaded",
                "media_id": record.id,
            },
        )
        return record

    async def upload_multiple(
        self, files: Sequence[IncomingFile], *, folder_id: str | None = None
    ) -> list[models.Media]:
        if not files:
            raise BadRequestError("No file uploaded.")
        for file in files:
            validate_upload(file)
        folder = await self.resolve_folder(folder_id)
        uploads = await asyncio.gather(*(self._upload(file) for file in files))
        records = await self.repo.add_media(
            [self._record(file, upload, folder) for file, upload in zip(files, uploads)]
        )
        logger.info(
            "Media uploaded",
            extra={
                "event_dataset": _DATASET,
                "event_action": "media_uploaded",
                "media_count": len(records),
            },
        )
        return records

    async def list_media(
        self, *, folder_id: str | None, page: int, limit: int
    ) -> schemas.MediaPage:
        items, total = await self.repo.list_media(folder_id=folder_id, page=page, limit=limit)
        return schemas.MediaPage(
            items=[schemas.MediaRead.model_validate(item) for item in items],
            total=total,
            page=page,
            limit=limit,
            total_pages=(total + limit - 1) // limit,
        )

    async def delete_single(self, media_id: str) -> None:
        record = await self.repo.get_media(media_id)
        if record is None:
            raise NotFoundError("Media not found")
        if not record.file_id:
            raise InternalError("Media record has no CDN file id")
        file_id = record.file_id
        await self.repo.delete_media([record.id])
        await call_external("imagekit", self.cdn.delete(file_id), message="File deletion failed")
        logger.info(
            "Media deleted",
            extra={
                "event_dataset": _DATASET,
                "event_action": "media_deleted",
                "media_id": media_id,
            },
        )

    async def delete_multiple(self, ids: Sequence[str]) -> schemas.DeleteManyResult:
        records = await self.repo.get_media_many(ids)
        if not records:
            raise NotFoundError("No media found for the given ids")
        file_ids = [record.file_id for record in records if record.file_id]
        count = await self.repo.delete_media([record.id for record in records])
        await call_external(
            "imagekit", self.cdn.delete_many(file_ids), message="File deletion failed"
        )
        logger.info(
            "Media deleted",
            extra={
                "event_dataset": _DATASET,
                "event_action": "media_deleted",
                "media_count": count,
            },
        )
        return schemas.DeleteManyResult(count=count, message=f"{count} file(s) deleted")


class MediaFolderService:
    def __init__(self, repo: MediaRepository) -> None:
        self.repo = repo

    async def create(self, data: schemas.MediaFolderCreate) -> models.MediaFolder:
        if data.parent_id and await self.repo.get_folder(data.parent_id) is None:
            raise NotFoundError("Parent folder not found")
        if await self.repo.find_folder(data.name, data.parent_id) is not None:
            raise ConflictError("A folder with this name already exists")
        return await self.repo.save_folder(
            models.MediaFolder(name=data.name, parent_id=data.parent_id)
        )

    async def list(self) -> list[models.MediaFolder]:
        return await self.repo.list_folders()

    async def update(self, data: schemas.MediaFolderUpdate) -> models.MediaFolder:
        folder = await self.repo.get_folder(data.id)
        if folder is None:
            raise NotFoundError("Folder not found")
        if data.name is not None and data.name != folder.name:
            clash = await self.repo.find_folder(data.name, folder.parent_id)
            if clash is not None:
                raise ConflictError("A folder with this name already exists")
            folder.name = data.name
            await self.repo.save_folder(folder)
        return folder

    async def delete(self, folder_id: str) -> None:
        folder = await self.repo.get_folder(folder_id)
        if folder is None:
            raise NotFoundError("Folder not found")
        if not await self.repo.folder_is_empty(folder.id):
            raise BadRequestError("Cannot delete a non-empty folder.")
        await self.repo.delete_folder(folder)
