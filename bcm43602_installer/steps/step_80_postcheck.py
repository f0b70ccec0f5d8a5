from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.command import CommandError
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


class PostcheckStep:
    step_id = "80_postcheck"

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        module = ctx.config.driver_module
        try:
            lines = ctx.wireless.kernel_log(module, limit=15)
            ifaces = ctx.wireless.list_interfaces()
        except (CommandError, OSError) as e:
            return StepResult.soft_fail(f"Diagnostics unavailable: {e}")

        logger.info("dmesg (%s, tail):", module)
        for line in lines:
            logger.info("  %s", line)
        for name in ifaces:
            logger.info("Interface: %s", name)
        return StepResult.ok(kernel_log=lines, interfaces=ifaces)
