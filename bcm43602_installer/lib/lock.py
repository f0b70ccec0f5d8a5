from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from ..errors import LockHeldError

logger = logging.getLogger(__name__)


class LockGuard:
    """Exclusive run marker holding the owner PID.

    There is no timeout and no stale-lock detection: a held lock means either
    a concurrent run or a crashed one, and only the operator can tell which.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._owned = False

    def _holder(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8").strip() or None
        except OSError:
            return None

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            holder = self._holder()
            raise LockHeldError(
                f"Another run is in progress (lock: {self.path}, pid: {holder or 'unknown'}). "
                "Remove the lock file manually if that process no longer exists."
            ) from None
        # Owned from creation on, so a failed PID write still removes the marker.
        self._owned = True
        try:
            os.write(fd, f"{os.getpid()}\n".encode())
        except OSError:
            self.release()
            raise
        finally:
            os.close(fd)
        logger.debug("Lock acquired: %s", self.path)

    def release(self) -> None:
        if not self._owned:
            return
        self._owned = False
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning("Lock file vanished before release: %s", self.path)
        else:
            logger.debug("Lock released: %s", self.path)

    def __enter__(self) -> "LockGuard":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
