from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from .config import InstallerConfig
from .lib.backend import Backend, BackendMode
from .lib.modules import ModprobeLoader, ModuleLoader
from .lib.pkg import PackageInstaller, SystemPackageInstaller, detect_package_manager
from .lib.probe import SystemSnapshot
from .lib.services import ServiceController, SystemdServiceController
from .lib.wireless import IwWirelessTool, WirelessTool


@dataclass(frozen=True)
class InstallOptions:
    offline: bool = False
    reload: bool = False
    regdom: bool = True
    backend_mode: BackendMode = BackendMode.AUTO
    iface: Optional[str] = None


@dataclass
class InstallContext:
    """Settings, host collaborators, and what earlier steps learned."""

    config: InstallerConfig
    options: InstallOptions
    services: ServiceController = field(default_factory=SystemdServiceController)
    modules: ModuleLoader = field(default_factory=ModprobeLoader)
    wireless: WirelessTool = field(default_factory=IwWirelessTool)
    make_installer: Callable[[str], PackageInstaller] = SystemPackageInstaller
    detect_pm: Callable[[], Optional[str]] = detect_package_manager
    prompt: Optional[Callable[[str], str]] = None
    now: Callable[[], datetime] = datetime.now
    sleep: Callable[[float], None] = time.sleep

    snapshot: Optional[SystemSnapshot] = None
    backend: Optional[Backend] = None
    reloaded: bool = False

    @property
    def installer(self) -> Optional[PackageInstaller]:
        if self.snapshot is None or not self.snapshot.package_manager:
            return None
        return self.make_installer(self.snapshot.package_manager)

    def require_snapshot(self) -> SystemSnapshot:
        if self.snapshot is None:
            raise RuntimeError("system snapshot missing; run the probe step first")
        return self.snapshot
