"""NVRAM calibration text handling.

The brcmfmac driver reads ``brcmfmac43602-pcie.txt`` as ``key=value`` lines.
Vendored copies often carry CRLF endings and a placeholder ``macaddr=``; both
are fixed up here before the file is installed.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..errors import ArtifactMissingError, InvalidMacError
from .fileops import write_temp

logger = logging.getLogger(__name__)

MAC_RE = re.compile(r"^([0-9a-f]{2}:){5}[0-9a-f]{2}$")
_MACADDR_KEY = "macaddr="


def normalize_line_endings(text: str) -> str:
    return "\n".join(line.rstrip("\r") for line in text.split("\n"))


def validate_mac(mac: str) -> str:
    if not MAC_RE.match(mac or ""):
        raise InvalidMacError(
            f"Invalid MAC address {mac!r}; the selected interface is probably virtual or not the BCM43602"
        )
    return mac


def _is_macaddr_line(line: str) -> bool:
    return line[: len(_MACADDR_KEY)].lower() == _MACADDR_KEY


def inject_mac(text: str, mac: str) -> str:
    """Return text with exactly one ``macaddr=<mac>`` line."""

    validate_mac(mac)
    lines = normalize_line_endings(text).split("\n")
    while lines and lines[-1] == "":
        lines.pop()

    out: list[str] = []
    placed = False
    for line in lines:
        if _is_macaddr_line(line):
            if not placed:
                out.append(f"{_MACADDR_KEY}{mac}")
                placed = True
            continue
        out.append(line)

    if not placed:
        out.append(f"{_MACADDR_KEY}{mac}")
    return "\n".join(out) + "\n"


def materialize(template: str | Path, mac: str, work_dir: str | Path) -> Path:
    """Render the template with mac into a new candidate file under work_dir.

    Neither the template nor any installed file is modified; nothing is
    written when the MAC is rejected.
    """

    t = Path(template)
    if not t.is_file():
        raise ArtifactMissingError(f"Vendored NVRAM template missing: {t}")

    rendered = inject_mac(t.read_text(encoding="utf-8", errors="surrogateescape"), mac)
    candidate = write_temp(
        work_dir,
        rendered.encode("utf-8", errors="surrogateescape"),
        prefix=f".{t.name}.",
    )
    logger.info("MAC set in %s: %s", t.name, mac)
    return candidate
