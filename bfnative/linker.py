from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

from .errors import LinkerError

logger = logging.getLogger(__name__)

RUNTIME_OBJECTS = ("crt1.o", "crti.o", "crtn.o")

RUNTIME_DIRS = (
    "/lib",
    "/usr/lib",
    "/lib64",
    "/usr/lib64",
    "/lib/x86_64-linux-gnu",
    "/usr/lib/x86_64-linux-gnu",
    "/lib/aarch64-linux-gnu",
    "/usr/lib/aarch64-linux-gnu",
)

DYNAMIC_LINKERS = {
    "x86_64": "/lib64/ld-linux-x86-64.so.2",
    "aarch64": "/lib/ld-linux-aarch64.so.1",
}


class Linker(ABC):
    """Turns an object file into a standalone executable."""

    name = "abstract"

    @abstractmethod
    def link(self, object_path: Path, output_path: Path) -> Path:
        raise NotImplementedError

    def _run(self, command: Sequence[str], output_path: Path) -> Path:
        logger.debug("running linker: %s", " ".join(command))
        try:
            result = subprocess.run(list(command), capture_output=True, text=True)
        except OSError as exc:
            raise LinkerError(f"cannot start linker '{command[0]}'", stderr=str(exc)) from exc
        if result.returncode != 0:
            raise LinkerError(
                f"linker exited with code {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        logger.info("linked executable %s", output_path)
        return output_path


class LdLinker(Linker):
    """Links with ``ld`` directly against the C runtime startup objects."""

    name = "ld"

    def __init__(
        self,
        executable: str = "ld",
        runtime_dirs: Sequence[str] = RUNTIME_DIRS,
        dynamic_linker: Optional[str] = None,
    ) -> None:
        self.executable = executable
        self.runtime_dirs = [Path(entry) for entry in runtime_dirs]
        self.dynamic_linker = dynamic_linker or DYNAMIC_LINKERS.get(
            platform.machine(), DYNAMIC_LINKERS["x86_64"]
        )

    def _runtime_dir(self) -> Path:
        for directory in self.runtime_dirs:
            if all((directory / name).exists() for name in RUNTIME_OBJECTS):
                return directory
        searched = ", ".join(str(entry) for entry in self.runtime_dirs)
        raise LinkerError(f"C runtime startup objects not found (searched {searched})")

    def command(self, object_path: Path, output_path: Path) -> List[str]:
        runtime_dir = self._runtime_dir()
        return [
            self.executable,
            str(object_path),
            *(str(runtime_dir / name) for name in RUNTIME_OBJECTS),
            "-o",
            str(output_path),
            f"-L{runtime_dir}",
            "-lc",
            "-dynamic-linker",
            self.dynamic_linker,
        ]

    def link(self, object_path: Path, output_path: Path) -> Path:
        if shutil.which(self.executable) is None:
            raise LinkerError(f"linker '{self.executable}' not found on PATH")
        return self._run(self.command(object_path, output_path), output_path)


class CcLinker(Linker):
    """Links through the system C compiler driver, which knows its own runtime."""

    name = "cc"

    def __init__(self, executable: str = "cc") -> None:
        self.executable = executable

    def command(self, object_path: Path, output_path: Path) -> List[str]:
        return [self.executable, str(object_path), "-o", str(output_path)]

    def link(self, object_path: Path, output_path: Path) -> Path:
        if shutil.which(self.executable) is None:
            raise LinkerError(f"C compiler '{self.executable}' not found on PATH")
        return self._run(self.command(object_path, output_path), output_path)


LINKERS: Dict[str, Type[Linker]] = {
    LdLinker.name: LdLinker,
    CcLinker.name: CcLinker,
}


def get_linker(name: str) -> Linker:
    try:
        return LINKERS[name]()
    except KeyError as exc:
        raise LinkerError(f"unknown linker '{name}'") from exc


__all__ = ["CcLinker", "LINKERS", "LdLinker", "Linker", "get_linker"]
