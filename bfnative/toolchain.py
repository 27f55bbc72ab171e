from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from llvmlite import ir

from .backend import LLVMBackend, ObjectBackend
from .codegen import compile_module
from .config import CompileOptions
from .linker import Linker, get_linker

logger = logging.getLogger(__name__)


def translate(
    source: str,
    options: CompileOptions,
    *,
    name: str = "main",
    backend: Optional[ObjectBackend] = None,
) -> ir.Module:
    backend = backend or LLVMBackend(options.opt_level)
    return compile_module(
        name,
        source,
        options.heap_size,
        size_bits=backend.pointer_bits,
        triple=backend.triple,
    )


def build(
    source: str,
    source_path: Path,
    options: CompileOptions,
    *,
    backend: Optional[ObjectBackend] = None,
    linker: Optional[Linker] = None,
) -> Path:
    """Compile ``source`` to an object file and, unless compile-only, link it.

    Returns the path of the produced artifact. When linking, the intermediate
    object file is removed whether or not the linker succeeds.
    """
    backend = backend or LLVMBackend(options.opt_level)
    object_path, executable_path = options.output_paths(source_path)

    module = translate(source, options, name=Path(source_path).stem, backend=backend)
    backend.emit_object(module, object_path)

    if options.compile_only:
        return object_path

    linker = linker or get_linker(options.linker)
    try:
        linker.link(object_path, executable_path)
    finally:
        object_path.unlink(missing_ok=True)
        logger.debug("removed intermediate object %s", object_path)
    return executable_path


__all__ = ["build", "translate"]
