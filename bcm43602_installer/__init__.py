"""BCM43602 Wi-Fi firmware installer (MacBook Pro 2016/2017).

Core design goals:
- Offline-first: vendored firmware and NVRAM before distro packages
- Idempotent steps; re-running is the recovery path
- Atomic replace with timestamped backups
- One run at a time (lock file)
- Centralized logging
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
