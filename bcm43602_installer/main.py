from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Dict, Optional

from . import __version__
from .config import DEFAULT_CONFIG_PATH, load_config
from .context import InstallContext, InstallOptions
from .errors import InstallerError
from .lib.backend import BackendMode
from .lib.lock import LockGuard
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import PipelineResult, run_pipeline
from .state_store import DEFAULT_REPORT_PATH, new_state, save_state
from .steps import (
    ActivateStep,
    ConfigureBackendStep,
    InstallNvramStep,
    InstallPrereqsStep,
    PostcheckStep,
    ProbeSystemStep,
    SetRegdomainStep,
    StageFirmwareStep,
)

logger = logging.getLogger(__name__)

RERUN_HINT = "Nothing was left half-done; fix the cause and simply run again."


def build_steps():
    return [
        ProbeSystemStep(),
        InstallPrereqsStep(),
        StageFirmwareStep(),
        InstallNvramStep(),
        SetRegdomainStep(),
        ConfigureBackendStep(),
        ActivateStep(),
        PostcheckStep(),
    ]


def _options_summary(options: InstallOptions) -> Dict[str, Any]:
    return {
        "offline": options.offline,
        "reload": options.reload,
        "regdom": options.regdom,
        "backend_mode": options.backend_mode.value,
        "iface": options.iface,
    }


def run_install(ctx: InstallContext, *, report_path: Optional[str] = None) -> PipelineResult:
    """Run the provisioning pipeline under the run lock.

    Raises LockHeldError before anything is touched if another run holds the
    lock. The lock is released on every exit path.
    """

    state = new_state(
        version=__version__,
        config=ctx.config.summary(),
        options=_options_summary(ctx.options),
    )

    with LockGuard(ctx.config.lock_file):
        try:
            return run_pipeline(ctx=ctx, state=state, steps=build_steps())
        except Exception:
            logger.exception("Installer failed")
            raise
        finally:
            if report_path:
                try:
                    save_state(report_path, state)
                except OSError as e:
                    logger.warning("Could not write run report %s: %s", report_path, e)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bcm43602-installer",
        description="Install BCM43602 firmware and NVRAM (MacBook Pro 2016/2017). Safe to re-run.",
    )
    p.add_argument("--offline", action="store_true", help="Use vendored files only; never install packages")
    p.add_argument("--reload", action="store_true", help="Reload brcmfmac and services instead of recommending a reboot")
    p.add_argument("--no-regdom", dest="regdom", action="store_false", help="Skip setting the regulatory domain")
    p.add_argument(
        "--backend",
        choices=[m.value for m in BackendMode],
        default=BackendMode.AUTO.value,
        help="NetworkManager Wi-Fi backend (default: auto)",
    )
    p.add_argument("--iface", default=None, help="Wireless interface (skips detection)")
    p.add_argument("--config", default=None, help=f"Installer settings YAML (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--report", default=DEFAULT_REPORT_PATH, help="Path to run report (json|yaml)")
    p.add_argument("-v", "--verbose", action="store_true", help="Show command output on the console")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if os.geteuid() != 0:
        print("[BCM43602] ERROR: please run as root (sudo).", file=sys.stderr)
        return 1

    configure_logging(log_path=args.log, verbose=args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error("Cannot load settings: %s", e)
        return 1

    options = InstallOptions(
        offline=args.offline,
        reload=args.reload,
        regdom=args.regdom,
        backend_mode=BackendMode(args.backend),
        iface=args.iface,
    )
    ctx = InstallContext(
        config=config,
        options=options,
        prompt=input if sys.stdin.isatty() else None,
    )

    try:
        result = run_install(ctx, report_path=args.report)
    except (InstallerError, OSError, EOFError) as e:
        # EOFError: the interface prompt lost its stdin.
        logger.error("%s", str(e) or type(e).__name__)
        logger.info(RERUN_HINT)
        return 1

    if not result.ok:
        logger.error("Stopped at %s: %s", result.failed, result.error)
        logger.info(RERUN_HINT)
        return 1

    if not ctx.reloaded:
        logger.info("Recommendation: reboot (sudo reboot)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
