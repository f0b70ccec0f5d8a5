from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence

from .errors import InstallerError
from .state_store import record_result

if TYPE_CHECKING:
    from .context import InstallContext

logger = logging.getLogger(__name__)


class StepStatus(str, enum.Enum):
    OK = "ok"
    NOOP = "noop"
    SOFT_FAIL = "soft_fail"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    status: StepStatus
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **details: Any) -> "StepResult":
        return cls(StepStatus.OK, message, details)

    @classmethod
    def noop(cls, message: str = "", **details: Any) -> "StepResult":
        return cls(StepStatus.NOOP, message, details)

    @classmethod
    def soft_fail(cls, message: str, **details: Any) -> "StepResult":
        return cls(StepStatus.SOFT_FAIL, message, details)

    @classmethod
    def fatal(cls, message: str, **details: Any) -> "StepResult":
        return cls(StepStatus.FATAL, message, details)


class Step(Protocol):
    """A single idempotent step."""

    step_id: str

    def run(self, ctx: "InstallContext", state: Dict[str, Any]) -> StepResult:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    results: Dict[str, StepResult]
    failed: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failed is None

    @property
    def error(self) -> Optional[str]:
        if self.failed is None:
            return None
        return self.results[self.failed].message


def run_pipeline(
    *,
    ctx: "InstallContext",
    state: Dict[str, Any],
    steps: Sequence[Step],
) -> PipelineResult:
    """Run steps in order; stop at the first fatal result.

    Soft failures are logged and recorded but do not stop the run. An
    InstallerError escaping a step is treated as that step's fatal result.
    """

    results: Dict[str, StepResult] = {}
    failed: Optional[str] = None

    for step in steps:
        state.setdefault("execution", {})["current_step"] = step.step_id
        logger.info("Running step %s", step.step_id)

        try:
            result = step.run(ctx, state)
        except InstallerError as e:
            result = StepResult.fatal(str(e), error_type=type(e).__name__)

        results[step.step_id] = result
        record_result(state, step.step_id, result.status.value, result.message, result.details)

        if result.status is StepStatus.SOFT_FAIL:
            logger.warning("Step %s: %s (continuing)", step.step_id, result.message)
        elif result.status is StepStatus.FATAL:
            logger.error("Step %s failed: %s", step.step_id, result.message)
            failed = step.step_id
            break
        elif result.message:
            logger.info("Step %s: %s", step.step_id, result.message)

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, results=results, failed=failed)
