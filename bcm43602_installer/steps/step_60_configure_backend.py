from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Tuple

from ..context import InstallContext
from ..lib.backend import Backend, decide_backend, read_configured_backend, render_stanza
from ..lib.command import CommandError
from ..lib.fileops import replace_if_changed, sweep_temp_files, write_temp
from ..pipeline import StepResult
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class ConfigureBackendStep:
    step_id = "60_configure_backend"

    def _service_actions(self, ctx: InstallContext, backend: Backend) -> List[Tuple[str, Callable[[str], None], str]]:
        snap = ctx.require_snapshot()
        services = ctx.services
        other = backend.other
        other_state = snap.iwd if other is Backend.IWD else snap.wpa_supplicant

        actions: List[Tuple[str, Callable[[str], None], str]] = [
            ("enable --now", services.enable_now, backend.value),
        ]
        if other_state.present:
            actions.append(("disable --now", services.disable_now, other.value))
        actions.append(("restart", services.restart, ctx.config.network_manager_unit))
        return actions

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        cfg = ctx.config
        snap = ctx.require_snapshot()

        backend, why = decide_backend(ctx.options.backend_mode, snap.iwd, snap.wpa_supplicant)
        ctx.backend = backend
        record_decision(state, "backend", {"backend": backend.value, "mode": ctx.options.backend_mode.value, **why})
        logger.info("Wi-Fi backend: %s (%s)", backend.value, why["reason"])

        sweep_temp_files(cfg.backend_conf)
        current = read_configured_backend(cfg.backend_conf)
        if current is backend:
            return StepResult.noop(f"NetworkManager already uses {backend.value}", backend=backend.value)

        candidate = write_temp(
            cfg.backend_conf.parent,
            render_stanza(backend).encode("utf-8"),
            prefix=f".{cfg.backend_conf.name}.",
        )
        try:
            outcome = replace_if_changed(candidate, cfg.backend_conf, now=ctx.now)
        except BaseException:
            candidate.unlink(missing_ok=True)
            raise

        failures: List[str] = []
        for label, action, unit in self._service_actions(ctx, backend):
            try:
                action(unit)
            except CommandError as e:
                logger.warning("systemctl %s %s failed: %s", label, unit, e)
                failures.append(f"{label} {unit}")

        details = {
            "backend": backend.value,
            "backup": str(outcome.backup) if outcome.backup else None,
        }
        if failures:
            # The stanza is in place; NetworkManager picks it up on its next start.
            return StepResult.soft_fail(
                f"{cfg.backend_conf.name} written, but service changes failed: {', '.join(failures)}",
                **details,
            )
        return StepResult.ok(f"NetworkManager switched to {backend.value}", **details)
