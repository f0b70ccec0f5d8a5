from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..context import InstallContext
from ..lib.backend import Backend
from ..lib.command import CommandError
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


class ActivateStep:
    step_id = "70_activate"

    def _quiet(self, label: str, fn, arg: str) -> None:
        try:
            fn(arg)
        except CommandError as e:
            logger.debug("%s %s ignored: %s", label, arg, e)

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        if not ctx.options.reload:
            return StepResult.noop("Reload not requested; a reboot is recommended")

        cfg = ctx.config
        snap = ctx.require_snapshot()
        services = ctx.services
        nm = cfg.network_manager_unit
        module = cfg.driver_module

        logger.info("Attempting a soft reload ...")
        for unit in (nm, Backend.WPA_SUPPLICANT.value, Backend.IWD.value):
            self._quiet("stop", services.stop, unit)
        self._quiet("link down", ctx.wireless.link_down, snap.iface)

        reload_error = None
        try:
            ctx.modules.unload(module)
            ctx.sleep(cfg.reload_settle_s)
            ctx.modules.load(module)
        except CommandError as e:
            reload_error = str(e)

        backends: List[str] = [ctx.backend.value] if ctx.backend else [b.value for b in Backend]
        for unit in (*backends, nm):
            self._quiet("start", services.start, unit)

        if reload_error:
            return StepResult.soft_fail(f"Module {module} reload failed, please reboot: {reload_error}")

        ctx.reloaded = True
        return StepResult.ok(f"Module {module} reloaded")
