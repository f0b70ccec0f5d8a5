from __future__ import annotations

import logging
from typing import Protocol

from .command import command_exists, run_cmd

logger = logging.getLogger(__name__)


class WirelessTool(Protocol):
    def list_interfaces(self) -> list[str]:
        ...

    def set_regdomain(self, country: str) -> None:
        ...

    def link_down(self, iface: str) -> None:
        ...

    def kernel_log(self, pattern: str, *, limit: int = 15) -> list[str]:
        ...


def parse_iw_dev(output: str) -> list[str]:
    """Interface names from ``iw dev`` output, in listing order."""

    names: list[str] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0] == "Interface":
            names.append(parts[1])
    return names


class IwWirelessTool:
    """iw/ip/dmesg-backed wireless helper."""

    def list_interfaces(self) -> list[str]:
        if not command_exists("iw"):
            return []
        r = run_cmd(["iw", "dev"], check=False)
        return parse_iw_dev(r.stdout) if r.ok else []

    def set_regdomain(self, country: str) -> None:
        run_cmd(["iw", "reg", "set", country])

    def link_down(self, iface: str) -> None:
        run_cmd(["ip", "link", "set", iface, "down"])

    def kernel_log(self, pattern: str, *, limit: int = 15) -> list[str]:
        r = run_cmd(["dmesg"])
        needle = pattern.lower()
        lines = [ln for ln in r.stdout.splitlines() if needle in ln.lower()]
        return lines[-limit:]
