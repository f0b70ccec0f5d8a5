from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_LOG_PATH = "/var/log/bcm43602-installer.log"
FALLBACK_LOG_NAME = "bcm43602-installer.log"

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CONSOLE_FORMAT = "[BCM43602] %(levelname)s: %(message)s"

_CONFIGURED_ATTR = "_bcm43602_log_path"


def _open_log_file(log_path: str) -> Tuple[Optional[logging.Handler], Optional[str]]:
    for candidate in (log_path, str(Path.cwd() / FALLBACK_LOG_NAME)):
        try:
            Path(os.path.dirname(candidate) or ".").mkdir(parents=True, exist_ok=True)
            return logging.FileHandler(candidate), candidate
        except OSError:
            continue
    return None, None


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    *,
    verbose: bool = False,
    also_console: bool = True,
) -> Optional[str]:
    """Configure root logging once per process.

    The file log always records DEBUG, which includes the stdout/stderr of
    every command run through ``run_cmd``. The console shows INFO and up in
    the short ``[BCM43602] ...`` form, or DEBUG with ``verbose``.

    An unwritable ``log_path`` falls back to ``./bcm43602-installer.log``; if
    that fails too, only the console is used. Returns the file actually
    written, or None.
    """

    root = logging.getLogger()
    if hasattr(root, _CONFIGURED_ATTR):
        return getattr(root, _CONFIGURED_ATTR)

    root.setLevel(logging.DEBUG)

    file_handler, chosen_path = _open_log_file(log_path)
    if file_handler is not None:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
        root.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT))
        root.addHandler(console)

    setattr(root, _CONFIGURED_ATTR, chosen_path)

    log = logging.getLogger(__name__)
    if chosen_path is None:
        log.warning("No writable log file (tried %s); logging to console only", log_path)
    elif chosen_path != log_path:
        log.warning("Cannot write %s; logging to %s", log_path, chosen_path)
    else:
        log.debug("Logging to %s", chosen_path)
    return chosen_path
