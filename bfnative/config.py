from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, validator

from .codegen import DEFAULT_HEAP_SIZE
from .errors import ConfigurationError
from .linker import LINKERS

# The pointer register is an i32, so larger tapes could not be fully addressed.
MAX_HEAP_SIZE = 2**31 - 1
DEFAULT_OPT_LEVEL = 2


class CompileOptions(BaseModel):
    heap_size: int = Field(default=DEFAULT_HEAP_SIZE, ge=1, le=MAX_HEAP_SIZE)
    opt_level: int = Field(default=DEFAULT_OPT_LEVEL, ge=0, le=3)
    output: Optional[str] = None
    compile_only: bool = False
    linker: str = "ld"

    @validator("output")
    def validate_output(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("output name must not be empty")
        return value

    @validator("linker")
    def validate_linker(cls, value: str) -> str:
        if value not in LINKERS:
            choices = ", ".join(sorted(LINKERS))
            raise ValueError(f"linker must be one of: {choices}")
        return value

    @classmethod
    def create(cls, **values: Any) -> "CompileOptions":
        """Build options, turning validation failures into ``ConfigurationError``."""
        filtered = {key: value for key, value in values.items() if value is not None}
        try:
            return cls(**filtered)
        except ValidationError as exc:
            raise ConfigurationError(_format_validation_error(exc)) from exc

    def output_paths(self, source_path: Path) -> Tuple[Path, Path]:
        """Return ``(object_path, executable_path)`` for ``source_path``."""
        stem = Path(source_path).stem
        if not stem:
            raise ConfigurationError(f"invalid input path: {source_path}")
        object_path = Path(stem).with_suffix(".o")
        executable_path = Path(self.output) if self.output else Path(stem)
        if self.compile_only and self.output:
            object_path = Path(self.output)
        elif object_path.resolve() == executable_path.resolve():
            # the object is deleted after linking, so it needs its own name
            object_path = executable_path.with_name(f"{executable_path.stem}.tmp.o")
        return object_path, executable_path


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(messages)


__all__ = ["CompileOptions", "DEFAULT_OPT_LEVEL", "MAX_HEAP_SIZE"]
