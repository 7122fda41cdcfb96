"""File handler backing ``combined.log`` and ``error.log``."""

from __future__ import annotations

import os
from contextlib import suppress
from io import TextIOWrapper
from logging.handlers import WatchedFileHandler


class SecureWatchedFileHandler(WatchedFileHandler):
    """Owner-only log file that survives deletion through the log endpoints.

    ``WatchedFileHandler`` notices the file is gone on the next record and
    reopens it; the directory is recreated as well if it was removed.
    """

    def _open(self) -> TextIOWrapper:  # noqa: D401
        os.makedirs(os.path.dirname(self.baseFilename), mode=0o700, exist_ok=True)
        stream = super()._open()
        with suppress(OSError):
            os.chmod(self.baseFilename, 0o600)
        return stream
