from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .services import ServiceState

logger = logging.getLogger(__name__)


class Backend(str, enum.Enum):
    IWD = "iwd"
    WPA_SUPPLICANT = "wpa_supplicant"

    @property
    def other(self) -> "Backend":
        return Backend.WPA_SUPPLICANT if self is Backend.IWD else Backend.IWD


class BackendMode(str, enum.Enum):
    AUTO = "auto"
    IWD = "iwd"
    WPA_SUPPLICANT = "wpa_supplicant"


def decide_backend(
    mode: BackendMode,
    iwd: ServiceState,
    wpa_supplicant: ServiceState,
) -> Tuple[Backend, Dict[str, Any]]:
    """Pick the Wi-Fi backend and record why."""

    if mode is BackendMode.IWD:
        return Backend.IWD, {"reason": "forced"}
    if mode is BackendMode.WPA_SUPPLICANT:
        return Backend.WPA_SUPPLICANT, {"reason": "forced"}

    if not iwd.present:
        return Backend.WPA_SUPPLICANT, {"reason": "iwd_unit_absent"}
    if iwd.active:
        return Backend.IWD, {"reason": "iwd_active"}
    if iwd.enabled:
        # Enabled-but-idle iwd does not displace a wpa_supplicant that is
        # currently serving the link.
        if wpa_supplicant.active:
            return Backend.WPA_SUPPLICANT, {"reason": "wpa_supplicant_active_iwd_idle"}
        return Backend.IWD, {"reason": "iwd_enabled"}
    return Backend.WPA_SUPPLICANT, {"reason": "iwd_inactive"}


def render_stanza(backend: Backend) -> str:
    return f"[device]\nwifi.backend={backend.value}\n"


def read_configured_backend(path: str | Path) -> Optional[Backend]:
    p = Path(path)
    if not p.is_file():
        return None
    value: Optional[str] = None
    for line in p.read_text(encoding="utf-8", errors="ignore").splitlines():
        s = line.strip()
        if s.startswith(("#", ";")) or "=" not in s:
            continue
        key, _, val = s.partition("=")
        if key.strip() == "wifi.backend":
            value = val.strip()
    if value is None:
        return None
    try:
        return Backend(value)
    except ValueError:
        logger.warning("Unknown wifi.backend=%s in %s", value, str(p))
        return None
