from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .command import run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceState:
    present: bool = False
    active: bool = False
    enabled: bool = False


class ServiceController(Protocol):
    def status(self, unit: str) -> ServiceState:
        ...

    def start(self, unit: str) -> None:
        ...

    def stop(self, unit: str) -> None:
        ...

    def restart(self, unit: str) -> None:
        ...

    def enable_now(self, unit: str) -> None:
        ...

    def disable_now(self, unit: str) -> None:
        ...


def _unit(name: str) -> str:
    return name if "." in name else f"{name}.service"


class SystemdServiceController:
    """systemctl-backed controller. Mutating calls raise CommandError on failure."""

    def status(self, unit: str) -> ServiceState:
        u = _unit(unit)
        listed = run_cmd(["systemctl", "list-unit-files", "--no-legend", u], check=False)
        present = listed.ok and bool(listed.stdout.strip())
        if not present:
            return ServiceState()
        active = run_cmd(["systemctl", "is-active", "--quiet", u], check=False).ok
        enabled = run_cmd(["systemctl", "is-enabled", "--quiet", u], check=False).ok
        return ServiceState(present=True, active=active, enabled=enabled)

    def start(self, unit: str) -> None:
        run_cmd(["systemctl", "start", _unit(unit)])

    def stop(self, unit: str) -> None:
        run_cmd(["systemctl", "stop", _unit(unit)])

    def restart(self, unit: str) -> None:
        run_cmd(["systemctl", "restart", _unit(unit)])

    def enable_now(self, unit: str) -> None:
        run_cmd(["systemctl", "enable", "--now", _unit(unit)])

    def disable_now(self, unit: str) -> None:
        run_cmd(["systemctl", "disable", "--now", _unit(unit)])
