from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from .command import command_exists, run_cmd

logger = logging.getLogger(__name__)

# Probe order matters: apt is checked before dnf on hosts that carry both.
SUPPORTED_MANAGERS = ("apt", "dnf", "pacman", "zypper")


class PackageInstaller(Protocol):
    manager: str

    def install(self, packages: Sequence[str]) -> None:
        ...


def detect_package_manager() -> Optional[str]:
    for pm in SUPPORTED_MANAGERS:
        if command_exists(pm):
            return pm
    return None


class SystemPackageInstaller:
    """Install packages through the host package manager (non-interactive)."""

    def __init__(self, manager: str) -> None:
        if manager not in SUPPORTED_MANAGERS:
            raise ValueError(f"Unsupported package manager: {manager}")
        self.manager = manager

    def install(self, packages: Sequence[str]) -> None:
        if not packages:
            return
        pkgs = list(packages)
        if self.manager == "apt":
            env = {"DEBIAN_FRONTEND": "noninteractive"}
            run_cmd(["apt-get", "update"], env=env)
            run_cmd(["apt-get", "install", "-y", *pkgs], env=env)
        elif self.manager == "dnf":
            run_cmd(["dnf", "install", "-y", *pkgs])
        elif self.manager == "pacman":
            run_cmd(["pacman", "-Sy", "--noconfirm", "--needed", *pkgs])
        elif self.manager == "zypper":
            run_cmd(["zypper", "--non-interactive", "install", "--no-confirm", *pkgs])
        logger.info("Installed via %s: %s", self.manager, " ".join(pkgs))
