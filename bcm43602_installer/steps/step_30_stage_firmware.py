from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.fileops import sweep_temp_files
from ..lib.firmware import BlobSource, stage_firmware
from ..pipeline import StepResult
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class StageFirmwareStep:
    step_id = "30_stage_firmware"

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        cfg = ctx.config
        installer = ctx.installer

        sweep_temp_files(cfg.system_blob)
        staged = stage_firmware(
            system_blob=cfg.system_blob,
            vendored_blob=cfg.vendored_blob,
            offline=ctx.options.offline,
            installer=installer,
            firmware_packages=cfg.firmware_packages(installer.manager if installer else None),
        )
        record_decision(state, "firmware_source", staged.source.value)

        if staged.source is BlobSource.PRESENT:
            return StepResult.noop(f"Firmware ready: {staged.path.name}", source=staged.source.value)
        return StepResult.ok(f"Firmware ready: {staged.path.name}", source=staged.source.value)
