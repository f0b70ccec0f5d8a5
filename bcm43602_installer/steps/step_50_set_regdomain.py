from __future__ import annotations

import logging
from typing import Any, Dict

from ..context import InstallContext
from ..lib.command import CommandError
from ..pipeline import StepResult
from ..state_store import add_warning

logger = logging.getLogger(__name__)


class SetRegdomainStep:
    step_id = "50_set_regdomain"

    def run(self, ctx: InstallContext, state: Dict[str, Any]) -> StepResult:
        if not ctx.options.regdom:
            return StepResult.noop("Regulatory domain skipped (--no-regdom)")

        country = ctx.config.regdomain
        crda = ctx.config.crda_defaults
        if crda.is_file():
            lines = crda.read_text(encoding="utf-8", errors="ignore").splitlines()
            if f"REGDOMAIN={country}" not in (ln.strip() for ln in lines):
                logger.info("Hint: legacy setups read REGDOMAIN=%s from %s", country, str(crda))
                add_warning(state, {"regdomain": f"REGDOMAIN={country} not set in {crda}"})

        logger.info("Setting regulatory domain (runtime) to %s ...", country)
        try:
            ctx.wireless.set_regdomain(country)
        except CommandError as e:
            return StepResult.soft_fail(f"Could not set regulatory domain {country}: {e}")
        return StepResult.ok(country=country)
