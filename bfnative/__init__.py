from .backend import LLVMBackend, ObjectBackend
from .codegen import Codegen, compile_module
from .config import CompileOptions
from .errors import (
    BackendError,
    CompileError,
    ConfigurationError,
    LinkerError,
    SourceError,
    UnmatchedBracketError,
)
from .interpreter import BrainfuckInterpreter, StepLimitExceeded
from .linker import CcLinker, LdLinker, Linker
from .toolchain import build, translate

__all__ = [
    "BackendError",
    "BrainfuckInterpreter",
    "CcLinker",
    "Codegen",
    "CompileError",
    "CompileOptions",
    "ConfigurationError",
    "LLVMBackend",
    "LdLinker",
    "Linker",
    "LinkerError",
    "ObjectBackend",
    "SourceError",
    "StepLimitExceeded",
    "UnmatchedBracketError",
    "build",
    "compile_module",
    "translate",
]
