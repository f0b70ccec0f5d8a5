from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.fileops import replace_if_changed, sweep_temp_files
from ..lib.nvram import materialize
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


class InstallNvramStep:
    step_id = "40_install_nvram"

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        cfg = ctx.config
        snap = ctx.require_snapshot()

        sweep_temp_files(cfg.system_nvram)
        # Candidate goes next to the destination so the swap is a rename.
        candidate = materialize(cfg.vendored_nvram, snap.mac, cfg.firmware_dir)
        try:
            outcome = replace_if_changed(candidate, cfg.system_nvram, now=ctx.now)
        except BaseException:
            candidate.unlink(missing_ok=True)
            raise

        if not outcome.changed:
            return StepResult.noop(f"{cfg.system_nvram.name} unchanged", mac=snap.mac)
        return StepResult.ok(
            f"{cfg.system_nvram.name} updated",
            mac=snap.mac,
            backup=str(outcome.backup) if outcome.backup else None,
        )
