from __future__ import annotations

import enum
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from ..errors import ArtifactMissingError
from .command import CommandError, run_cmd
from .fileops import atomic_copy
from .pkg import PackageInstaller

logger = logging.getLogger(__name__)


class BlobSource(str, enum.Enum):
    PRESENT = "present"
    VENDORED = "vendored"
    COMPRESSED = "compressed"
    PACKAGE = "package"


@dataclass(frozen=True)
class StageResult:
    path: Path
    source: BlobSource


def decompress_zstd(src: str | Path, dst: str | Path) -> None:
    """Decompress src into dst via unzstd; dst only appears once complete."""

    s = Path(src)
    d = Path(dst)
    fd, name = tempfile.mkstemp(dir=str(d.parent), prefix=f".{d.name}.")
    os.close(fd)
    try:
        run_cmd(["unzstd", "-q", "-f", str(s), "-o", name])
        os.chmod(name, 0o644)
        os.replace(name, d)
    except BaseException:
        Path(name).unlink(missing_ok=True)
        raise
    logger.info("Decompressed %s -> %s", s.name, d.name)


def _from_compressed(system_blob: Path) -> bool:
    zst = system_blob.with_name(system_blob.name + ".zst")
    if not zst.is_file():
        return False
    logger.info("Unpacking %s ...", zst.name)
    try:
        decompress_zstd(zst, system_blob)
    except CommandError as e:
        logger.warning("Could not unpack %s: %s", zst.name, e)
        return False
    return True


def stage_firmware(
    *,
    system_blob: str | Path,
    vendored_blob: str | Path,
    offline: bool,
    installer: Optional[PackageInstaller],
    firmware_packages: Sequence[str] = (),
) -> StageResult:
    """Ensure the firmware blob exists at system_blob.

    Sources in preference order: already present, vendored copy, compressed
    system copy, then (online only) the distro firmware packages.
    """

    sys_blob = Path(system_blob)
    vendored = Path(vendored_blob)
    sys_blob.parent.mkdir(parents=True, exist_ok=True)

    if sys_blob.is_file():
        logger.info("Firmware already present: %s", sys_blob.name)
        return StageResult(path=sys_blob, source=BlobSource.PRESENT)

    if vendored.is_file():
        logger.info("Copying vendored firmware into %s ...", str(sys_blob.parent))
        atomic_copy(vendored, sys_blob, mode=0o644)
        return StageResult(path=sys_blob, source=BlobSource.VENDORED)

    logger.info("No vendored %s found", vendored.name)

    if _from_compressed(sys_blob):
        return StageResult(path=sys_blob, source=BlobSource.COMPRESSED)

    if offline:
        raise ArtifactMissingError(
            f"OFFLINE: firmware {sys_blob.name} not available. "
            f"Place it at {vendored} and run again."
        )

    if installer is not None and firmware_packages:
        logger.info("Looking for firmware in distro packages ...")
        try:
            installer.install(firmware_packages)
        except CommandError as e:
            logger.warning("Firmware package install failed: %s", e)
        if sys_blob.is_file():
            return StageResult(path=sys_blob, source=BlobSource.PACKAGE)
        if _from_compressed(sys_blob):
            return StageResult(path=sys_blob, source=BlobSource.PACKAGE)

    raise ArtifactMissingError(
        f"Firmware {sys_blob.name} not found. Either place it at {vendored}, "
        "or run without --offline on a host with a supported package manager."
    )
