from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.command import CommandError
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


class InstallPrereqsStep:
    step_id = "20_install_prereqs"

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        if ctx.options.offline:
            return StepResult.noop("OFFLINE: package installation skipped")

        installer = ctx.installer
        if installer is None:
            return StepResult.noop("No package manager detected; continuing without installing tools")

        packages = ctx.config.tool_packages(installer.manager)
        if not packages:
            return StepResult.noop(f"No tool packages configured for {installer.manager}")

        logger.info("Installing prerequisites via %s ...", installer.manager)
        try:
            installer.install(packages)
        except CommandError as e:
            return StepResult.soft_fail(f"Prerequisite install failed: {e}", manager=installer.manager)

        return StepResult.ok(packages=packages, manager=installer.manager)
