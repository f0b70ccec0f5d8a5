from __future__ import annotations

import filecmp
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class InstallOutcome:
    dst: Path
    changed: bool
    backup: Optional[Path] = None


def write_temp(directory: str | Path, data: bytes, *, prefix: str, mode: int = 0o644) -> Path:
    """Write data to a fresh temp file in directory and return its path.

    The file lives next to its eventual destination so that a later
    os.replace() is a same-filesystem rename.
    """

    d = Path(directory)
    d.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=str(d), prefix=prefix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(name, mode)
    except BaseException:
        Path(name).unlink(missing_ok=True)
        raise
    return Path(name)


def atomic_copy(src: str | Path, dst: str | Path, *, mode: int = 0o644) -> None:
    s = Path(src)
    d = Path(dst)
    d.parent.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=str(d.parent), prefix=f".{d.name}.")
    os.close(fd)
    try:
        shutil.copyfile(s, name)
        os.chmod(name, mode)
        os.replace(name, d)
    except BaseException:
        Path(name).unlink(missing_ok=True)
        raise
    logger.info("Copied %s -> %s", str(s), str(d))


def sweep_temp_files(dst: str | Path) -> List[Path]:
    """Delete ``.<name>.*`` temp files an interrupted run left beside dst.

    Only safe while holding the run lock.
    """

    d = Path(dst)
    if not d.parent.is_dir():
        return []
    removed: List[Path] = []
    for p in sorted(d.parent.glob(f".{d.name}.*")):
        if p.is_file():
            p.unlink()
            removed.append(p)
    for p in removed:
        logger.info("Removed stale temp file %s", str(p))
    return removed


def backup_path(dst: str | Path, now: datetime) -> Path:
    """Sibling backup name; lexical order matches capture order."""

    d = Path(dst)
    stamp = now.strftime("%Y%m%d-%H%M%S-%f")
    candidate = d.with_name(f"{d.name}.bak.{stamp}")
    n = 1
    while candidate.exists():
        candidate = d.with_name(f"{d.name}.bak.{stamp}.{n}")
        n += 1
    return candidate


def replace_if_changed(candidate: str | Path, dst: str | Path, *, now: Clock = datetime.now) -> InstallOutcome:
    """Swap candidate into dst unless the bytes already match.

    - identical: candidate is discarded, dst and its backups are untouched
    - different: existing dst is copied to a timestamped backup first, then
      candidate is renamed over dst
    """

    c = Path(candidate)
    d = Path(dst)

    if d.is_file() and filecmp.cmp(c, d, shallow=False):
        c.unlink()
        logger.info("%s unchanged; nothing to replace", d.name)
        return InstallOutcome(dst=d, changed=False)

    backup: Optional[Path] = None
    if d.exists():
        backup = backup_path(d, now())
        shutil.copy2(d, backup)
        logger.info("Backup created: %s", str(backup))

    d.parent.mkdir(parents=True, exist_ok=True)
    os.replace(c, d)
    logger.info("%s updated", str(d))
    return InstallOutcome(dst=d, changed=True, backup=backup)
