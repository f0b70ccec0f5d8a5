from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_CONFIG_PATH = "/etc/bcm43602-installer.yaml"

FIRMWARE_BASENAME = "brcmfmac43602-pcie"

# Tooling the installer itself shells out to.
DEFAULT_TOOL_PACKAGES: Dict[str, List[str]] = {
    "apt": ["zstd", "iw", "wireless-tools", "ca-certificates"],
    "dnf": ["zstd", "iw", "wireless-tools", "ca-certificates"],
    "pacman": ["zstd", "iw", "wireless_tools", "ca-certificates"],
    "zypper": ["zstd", "iw", "wireless-tools", "ca-certificates"],
}

# Packages that ship brcmfmac43602-pcie.bin(.zst).
DEFAULT_FIRMWARE_PACKAGES: Dict[str, List[str]] = {
    "apt": ["linux-firmware", "firmware-brcm80211"],
    "dnf": ["linux-firmware"],
    "pacman": ["linux-firmware"],
    "zypper": ["linux-firmware"],
}


def _package_firmware_dir() -> Path:
    # Shipped as package data so an installed copy finds it next to this module.
    return Path(__file__).resolve().parent / "firmware"


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _paths(self) -> Dict[str, Any]:
        return self.raw.get("paths") or {}

    @property
    def firmware_dir(self) -> Path:
        return Path(self._paths().get("firmware_dir") or "/lib/firmware/brcm")

    @property
    def vendored_dir(self) -> Path:
        return Path(self._paths().get("vendored_dir") or _package_firmware_dir())

    @property
    def lock_file(self) -> Path:
        return Path(self._paths().get("lock_file") or "/var/lock/install-bcm43602.lock")

    @property
    def backend_conf(self) -> Path:
        return Path(self._paths().get("backend_conf") or "/etc/NetworkManager/conf.d/wifi_backend.conf")

    @property
    def sysfs_net(self) -> Path:
        return Path(self._paths().get("sysfs_net") or "/sys/class/net")

    @property
    def crda_defaults(self) -> Path:
        return Path(self._paths().get("crda_defaults") or "/etc/default/crda")

    @property
    def system_blob(self) -> Path:
        return self.firmware_dir / f"{FIRMWARE_BASENAME}.bin"

    @property
    def system_nvram(self) -> Path:
        return self.firmware_dir / f"{FIRMWARE_BASENAME}.txt"

    @property
    def vendored_blob(self) -> Path:
        return self.vendored_dir / f"{FIRMWARE_BASENAME}.bin"

    @property
    def vendored_nvram(self) -> Path:
        return self.vendored_dir / f"{FIRMWARE_BASENAME}.txt"

    @property
    def regdomain(self) -> str:
        return str(self.raw.get("regdomain") or "DE").upper()

    @property
    def driver_module(self) -> str:
        return str(self.raw.get("driver_module") or "brcmfmac")

    @property
    def network_manager_unit(self) -> str:
        return str(self.raw.get("network_manager_unit") or "NetworkManager")

    @property
    def reload_settle_s(self) -> float:
        return float(self.raw.get("reload_settle_s", 1.0))

    def _packages(self, key: str, defaults: Dict[str, List[str]], manager: Optional[str]) -> List[str]:
        if not manager:
            return []
        overrides = (self.raw.get("packages") or {}).get(key) or {}
        pkgs = overrides.get(manager, defaults.get(manager) or [])
        if not isinstance(pkgs, list):
            raise ValueError(f"packages.{key}.{manager} must be a list")
        return [str(p) for p in pkgs]

    def tool_packages(self, manager: Optional[str]) -> List[str]:
        return self._packages("tools", DEFAULT_TOOL_PACKAGES, manager)

    def firmware_packages(self, manager: Optional[str]) -> List[str]:
        return self._packages("firmware", DEFAULT_FIRMWARE_PACKAGES, manager)

    def summary(self) -> Dict[str, Any]:
        return {
            "firmware_dir": str(self.firmware_dir),
            "vendored_dir": str(self.vendored_dir),
            "backend_conf": str(self.backend_conf),
            "lock_file": str(self.lock_file),
            "regdomain": self.regdomain,
            "driver_module": self.driver_module,
        }


def load_config(path: Optional[str] = None) -> InstallerConfig:
    """Load settings from YAML.

    With no explicit path a missing default file just means built-in
    defaults; an explicitly named file must exist.
    """

    p = Path(path or DEFAULT_CONFIG_PATH)
    if not p.exists():
        if path:
            raise FileNotFoundError(path)
        return InstallerConfig()

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("installer config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping/object")

    return InstallerConfig(raw=raw)
