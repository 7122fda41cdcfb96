"""Administrator access to the application log files."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import ORJSONResponse

from ..services import LogViewer
from .deps import get_log_viewer, require_admin
from .responses import success

router = APIRouter(prefix="/logs", tags=["logs"], dependencies=[Depends(require_admin)])

_viewer_dependency = Depends(get_log_viewer)


@router.get("/files")
async def list_files(viewer: LogViewer = _viewer_dependency) -> ORJSONResponse:
    return success("Log files retrieved successfully", {"files": await viewer.list_files()})


@router.get("/view/{filename}")
async def view_file(filename: str, viewer: LogViewer = _viewer_dependency) -> ORJSONResponse:
    """Return every entry of a log file; unparseable lines are kept raw."""

    return success("Log file retrieved successfully", {"logs": await viewer.read(filename)})


@router.get("/search/{filename}")
async def search_file(
    filename: str,
    keyword: str = Query(..., min_length=1),
    viewer: LogViewer = _viewer_dependency,
) -> ORJSONResponse:
    matches = await viewer.search(filename, keyword)
    return success("Log search completed", {"matches": matches})


@router.delete("/delete/{filename}")
async def delete_file(filename: str, viewer: LogViewer = _viewer_dependency) -> ORJSONResponse:
    await viewer.delete(filename)
    return success("Log file deleted successfully")
