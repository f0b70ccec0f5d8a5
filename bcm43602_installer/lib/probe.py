from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ..errors import PreconditionError
from .services import ServiceController, ServiceState
from .wireless import WirelessTool

logger = logging.getLogger(__name__)


# Predictable (wlp2s0) and legacy (wlan0) names both start with "wl".
WIRELESS_PREFIX = "wl"


@dataclass(frozen=True)
class SystemSnapshot:
    """Everything later steps need to know about the host, read once."""

    package_manager: Optional[str]
    iface: str
    mac: str
    iwd: ServiceState = field(default_factory=ServiceState)
    wpa_supplicant: ServiceState = field(default_factory=ServiceState)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _read_text(path: Path) -> Optional[str]:
    try:
        txt = path.read_text(encoding="utf-8", errors="ignore").strip()
        return txt or None
    except OSError:
        return None


def detect_wireless_iface(wireless: WirelessTool, *, sysfs_net: str | Path) -> Optional[str]:
    """First wireless interface: ``iw dev`` first, then sysfs naming."""

    for name in wireless.list_interfaces():
        return name

    net = Path(sysfs_net)
    if not net.is_dir():
        return None
    for p in sorted(net.iterdir(), key=lambda c: c.name):
        if p.name.startswith(WIRELESS_PREFIX):
            return p.name
    return None


def resolve_iface(
    explicit: Optional[str],
    wireless: WirelessTool,
    *,
    sysfs_net: str | Path,
    prompt: Optional[Callable[[str], str]] = None,
) -> str:
    """Pick the target interface.

    Order: explicit name, auto-detection, then the interactive prompt. Without
    a prompt (non-interactive runs) an undetectable interface is fatal.
    """

    if explicit:
        return explicit

    iface = detect_wireless_iface(wireless, sysfs_net=sysfs_net)
    if iface:
        logger.info("Detected wireless interface: %s", iface)
        return iface

    if prompt is not None:
        entered = prompt("Wireless interface not detected. Enter its name (e.g. wlp2s0): ").strip()
        if entered:
            return entered

    raise PreconditionError("Wireless interface not found; pass --iface <name>")


def read_mac(iface: str, *, sysfs_net: str | Path) -> str:
    d = Path(sysfs_net) / iface
    if not d.is_dir():
        raise PreconditionError(f"Interface {iface} does not exist")
    return (_read_text(d / "address") or "").lower()


def probe_system(
    *,
    iface: str,
    package_manager: Optional[str],
    services: ServiceController,
    sysfs_net: str | Path,
) -> SystemSnapshot:
    snap = SystemSnapshot(
        package_manager=package_manager,
        iface=iface,
        mac=read_mac(iface, sysfs_net=sysfs_net),
        iwd=services.status("iwd"),
        wpa_supplicant=services.status("wpa_supplicant"),
    )
    logger.info(
        "System: pm=%s iface=%s mac=%s iwd=%s wpa_supplicant=%s",
        snap.package_manager or "none",
        snap.iface,
        snap.mac,
        snap.iwd,
        snap.wpa_supplicant,
    )
    return snap
