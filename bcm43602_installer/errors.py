from __future__ import annotations


class InstallerError(RuntimeError):
    """Unrecoverable condition; the run stops and the lock is released."""


class PreconditionError(InstallerError):
    pass


class LockHeldError(InstallerError):
    pass


class ArtifactMissingError(InstallerError):
    pass


class InvalidMacError(InstallerError):
    pass
