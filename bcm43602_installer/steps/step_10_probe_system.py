from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.probe import probe_system, resolve_iface
from ..pipeline import StepResult

logger = logging.getLogger(__name__)


class ProbeSystemStep:
    step_id = "10_probe_system"

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        opts = ctx.options
        cfg = ctx.config

        # Offline runs never reach for the network, so the manager is irrelevant.
        pm = None if opts.offline else ctx.detect_pm()

        iface = resolve_iface(opts.iface, ctx.wireless, sysfs_net=cfg.sysfs_net, prompt=ctx.prompt)
        snap = probe_system(iface=iface, package_manager=pm, services=ctx.services, sysfs_net=cfg.sysfs_net)

        ctx.snapshot = snap
        state["system"] = snap.to_dict()
        return StepResult.ok(f"iface={snap.iface} package_manager={pm or 'none'}")
