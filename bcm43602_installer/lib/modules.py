from __future__ import annotations

from typing import Protocol

from .command import run_cmd


class ModuleLoader(Protocol):
    def unload(self, name: str) -> None:
        ...

    def load(self, name: str) -> None:
        ...


class ModprobeLoader:
    def unload(self, name: str) -> None:
        run_cmd(["modprobe", "-r", name])

    def load(self, name: str) -> None:
        run_cmd(["modprobe", name])
