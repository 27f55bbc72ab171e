from __future__ import annotations

import ctypes
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from llvmlite import binding as llvm
from llvmlite import ir

from .errors import BackendError

logger = logging.getLogger(__name__)

_llvm_ready = False


def _initialize_llvm() -> None:
    global _llvm_ready
    if _llvm_ready:
        return
    llvm.initialize_native_target()
    llvm.initialize_native_asmprinter()
    _llvm_ready = True


def llvm_version() -> str:
    return ".".join(str(part) for part in llvm.llvm_version_info)


class ObjectBackend(ABC):
    """Lowers a program module into a native object file."""

    #: width of ``size_t`` on the target, used for the ``calloc`` signature
    pointer_bits: int = 64
    triple: Optional[str] = None

    @abstractmethod
    def emit_object(self, module: ir.Module, path: Path) -> Path:
        raise NotImplementedError


class LLVMBackend(ObjectBackend):
    """Runs the LLVM pass pipeline and native code generation via llvmlite."""

    def __init__(self, opt_level: int = 2, triple: Optional[str] = None) -> None:
        if not 0 <= opt_level <= 3:
            raise BackendError(f"optimization level must be in 0-3, got {opt_level}")
        _initialize_llvm()
        self.opt_level = opt_level
        self.triple = triple or llvm.get_default_triple()
        try:
            target = llvm.Target.from_triple(self.triple)
        except RuntimeError as exc:
            raise BackendError(str(exc)) from exc
        self.target_machine = target.create_target_machine(
            opt=opt_level,
            reloc="pic",
            codemodel="default",
        )
        self.pointer_bits = ctypes.sizeof(ctypes.c_void_p) * 8

    def _parse(self, module: ir.Module) -> llvm.ModuleRef:
        try:
            llvm_module = llvm.parse_assembly(str(module), context=llvm.create_context())
            llvm_module.triple = self.triple
            llvm_module.data_layout = str(self.target_machine.target_data)
            llvm_module.verify()
        except RuntimeError as exc:
            raise BackendError(str(exc)) from exc
        return llvm_module

    def _run_passes(self, llvm_module: llvm.ModuleRef) -> None:
        tuning = llvm.create_pipeline_tuning_options(speed_level=self.opt_level)
        tuning.loop_unrolling = self.opt_level >= 2
        tuning.loop_vectorization = self.opt_level >= 2
        tuning.slp_vectorization = self.opt_level >= 2
        pass_builder = llvm.create_pass_builder(self.target_machine, tuning)
        pass_manager = pass_builder.getModulePassManager()
        pass_manager.run(llvm_module, pass_builder)
        try:
            llvm_module.verify()
        except RuntimeError as exc:
            raise BackendError(str(exc)) from exc

    def prepare(self, module: ir.Module) -> llvm.ModuleRef:
        llvm_module = self._parse(module)
        logger.debug("running LLVM pipeline at -O%d for %s", self.opt_level, self.triple)
        self._run_passes(llvm_module)
        return llvm_module

    def optimize(self, module: ir.Module) -> str:
        return str(self.prepare(module))

    def emit_assembly(self, module: ir.Module) -> str:
        return self.target_machine.emit_assembly(self.prepare(module))

    def emit_object(self, module: ir.Module, path: Path) -> Path:
        llvm_module = self.prepare(module)
        try:
            data = self.target_machine.emit_object(llvm_module)
        except RuntimeError as exc:
            raise BackendError(str(exc)) from exc
        path = Path(path)
        path.write_bytes(data)
        logger.info("wrote object file %s (%d bytes)", path, len(data))
        return path


__all__ = ["LLVMBackend", "ObjectBackend", "llvm_version"]
