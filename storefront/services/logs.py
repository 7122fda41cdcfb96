"""Read-only access to the JSON-lines log files for administrators."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import anyio

from ..errors import ForbiddenError, NotFoundError

logger = logging.getLogger("storefront.logs")


def _parse_line(line: str) -> dict[str, Any]:
    try:
        parsed = json.loads(line)
    except ValueError:
        return {"raw": line, "error": "Invalid JSON"}
    if isinstance(parsed, dict):
        return parsed
    return {"raw": line, "error": "Invalid JSON"}


class LogViewer:
    """List, read, search and delete ``*.log`` files in one directory."""

    def __init__(self, log_dir: str | Path) -> None:
        self.log_dir = Path(log_dir).resolve()

    def _resolve(self, filename: str) -> Path:
        if not filename or ".." in filename or not filename.endswith(".log"):
            raise ForbiddenError("Forbidden: Access denied")
        path = (self.log_dir / filename).resolve()
        if path.parent != self.log_dir:
            raise ForbiddenError("Forbidden: Access denied")
        if not path.is_file():
            raise NotFoundError("Log file not found")
        return path

    def _list_files(self) -> list[str]:
        if not self.log_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.log_dir.iterdir()
            if entry.is_file() and entry.name.endswith(".log")
        )

    def _read(self, filename: str) -> list[dict[str, Any]]:
        path = self._resolve(filename)
        with path.open(encoding="utf-8", errors="replace") as handle:
            return [_parse_line(line) for line in (raw.strip() for raw in handle) if line]

    def _search(self, filename: str, keyword: str) -> list[dict[str, Any]]:
        path = self._resolve(filename)
        matches: list[dict[str, Any]] = []
        with path.open(encoding="utf-8", errors="replace") as handle:
            for raw in handle:
                line = raw.strip()
                if line and keyword in line:
                    matches.append(_parse_line(line))
        return matches

    def _delete(self, filename: str) -> None:
        self._resolve(filename).unlink()

    async def list_files(self) -> list[str]:
        return await anyio.to_thread.run_sync(self._list_files)

    async def read(self, filename: str) -> list[dict[str, Any]]:
        return await anyio.to_thread.run_sync(self._read, filename)

    async def search(self, filename: str, keyword: str) -> list[dict[str, Any]]:
        return await anyio.to_thread.run_sync(self._search, filename, keyword)

    async def delete(self, filename: str) -> None:
        await anyio.to_thread.run_sync(self._delete, filename)
        logger.warning(
            "Log file deleted",
            extra={
                "event_dataset": "storefront-api.logs",
                "event_action": "log_file_deleted",
                "log_file": filename,
            },
        )
