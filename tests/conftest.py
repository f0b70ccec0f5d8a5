"""Shared fixtures: a throwaway filesystem layout and in-memory collaborators."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

import pytest

from bcm43602_installer.config import InstallerConfig
from bcm43602_installer.context import InstallContext, InstallOptions
from bcm43602_installer.lib.command import CmdResult, CommandError
from bcm43602_installer.lib.services import ServiceState

TEMPLATE = (
    "boardtype=0x062b\r\n"
    "boardrev=0x1101\r\n"
    "macaddr=00:00:00:00:00:00\r\n"
    "ccode=X0\r\n"
)
LIVE_MAC = "aa:bb:cc:dd:ee:ff"


def _failure(*argv: str) -> CommandError:
    return CommandError(CmdResult(argv=list(argv), returncode=1, stdout="", stderr="boom"))


class FakeServices:
    def __init__(self, states: Optional[Dict[str, ServiceState]] = None, fail: Optional[Set[Tuple[str, str]]] = None):
        self.states = dict(states or {})
        self.fail = set(fail or ())
        self.calls: List[Tuple[str, str]] = []

    def status(self, unit: str) -> ServiceState:
        return self.states.get(unit, ServiceState())

    def _do(self, action: str, unit: str) -> None:
        self.calls.append((action, unit))
        if (action, unit) in self.fail:
            raise _failure("systemctl", action, unit)

    def start(self, unit: str) -> None:
        self._do("start", unit)

    def stop(self, unit: str) -> None:
        self._do("stop", unit)

    def restart(self, unit: str) -> None:
        self._do("restart", unit)

    def enable_now(self, unit: str) -> None:
        self._do("enable_now", unit)

    def disable_now(self, unit: str) -> None:
        self._do("disable_now", unit)


class FakeInstaller:
    def __init__(self, manager: str = "apt", on_install: Optional[Callable[[Sequence[str]], None]] = None, fail: bool = False):
        self.manager = manager
        self.on_install = on_install
        self.fail = fail
        self.installed: List[List[str]] = []

    def install(self, packages: Sequence[str]) -> None:
        self.installed.append(list(packages))
        if self.fail:
            raise _failure(self.manager, "install", *packages)
        if self.on_install:
            self.on_install(packages)


class FakeModules:
    def __init__(self, fail_unload: bool = False):
        self.fail_unload = fail_unload
        self.calls: List[Tuple[str, str]] = []

    def unload(self, name: str) -> None:
        self.calls.append(("unload", name))
        if self.fail_unload:
            raise _failure("modprobe", "-r", name)

    def load(self, name: str) -> None:
        self.calls.append(("load", name))


class FakeWireless:
    def __init__(self, interfaces: Optional[List[str]] = None, kernel_lines: Optional[List[str]] = None, fail_regdomain: bool = False):
        self.interfaces = list(interfaces or [])
        self.kernel_lines = list(kernel_lines or [])
        self.fail_regdomain = fail_regdomain
        self.regdomains: List[str] = []
        self.downed: List[str] = []

    def list_interfaces(self) -> List[str]:
        return list(self.interfaces)

    def set_regdomain(self, country: str) -> None:
        self.regdomains.append(country)
        if self.fail_regdomain:
            raise _failure("iw", "reg", "set", country)

    def link_down(self, iface: str) -> None:
        self.downed.append(iface)

    def kernel_log(self, pattern: str, *, limit: int = 15) -> List[str]:
        return [ln for ln in self.kernel_lines if pattern in ln.lower()][-limit:]


class TickingClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime = datetime(2026, 10, 17, 12, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def layout(tmp_path: Path) -> Dict[str, Path]:
    paths = {
        "firmware_dir": tmp_path / "lib/firmware/brcm",
        "vendored_dir": tmp_path / "repo/firmware",
        "lock_file": tmp_path / "var/lock/install-bcm43602.lock",
        "backend_conf": tmp_path / "etc/NetworkManager/conf.d/wifi_backend.conf",
        "sysfs_net": tmp_path / "sys/class/net",
        "crda_defaults": tmp_path / "etc/default/crda",
    }
    paths["vendored_dir"].mkdir(parents=True)
    (paths["vendored_dir"] / "brcmfmac43602-pcie.bin").write_bytes(b"\x00FIRMWARE\x01")
    (paths["vendored_dir"] / "brcmfmac43602-pcie.txt").write_bytes(TEMPLATE.encode())

    for name in ("lo", "wlp2s0"):
        (paths["sysfs_net"] / name).mkdir(parents=True)
    (paths["sysfs_net"] / "lo" / "address").write_text("00:00:00:00:00:00\n")
    (paths["sysfs_net"] / "wlp2s0" / "address").write_text("AA:BB:CC:DD:EE:FF\n")
    return paths


@pytest.fixture
def config(layout: Dict[str, Path]) -> InstallerConfig:
    return InstallerConfig(raw={"paths": {k: str(v) for k, v in layout.items()}, "reload_settle_s": 0})


@pytest.fixture
def make_ctx(config: InstallerConfig):
    def _make(
        *,
        services: Optional[FakeServices] = None,
        installer: Optional[FakeInstaller] = None,
        modules: Optional[FakeModules] = None,
        wireless: Optional[FakeWireless] = None,
        package_manager: Optional[str] = None,
        **options,
    ) -> InstallContext:
        inst = installer or FakeInstaller(manager=package_manager or "apt")
        return InstallContext(
            config=config,
            options=InstallOptions(**options),
            services=services or FakeServices(),
            modules=modules or FakeModules(),
            wireless=wireless or FakeWireless(),
            make_installer=lambda pm: inst,
            detect_pm=lambda: package_manager,
            prompt=None,
            now=TickingClock(),
            sleep=lambda s: None,
        )

    return _make
