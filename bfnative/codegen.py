"""Single-pass translation of Brainfuck source into an LLVM IR module.

The generated ``main`` function allocates a zero-filled tape with ``calloc``,
keeps the cell index in a stack slot and releases the tape with ``free`` on
its only exit path. Loops become basic blocks: ``[`` opens a loop block and an
"after" block, entering the loop only when the current cell is non-zero;
``]`` branches back to the innermost open loop block while the current
cell is non-zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from llvmlite import ir

from .errors import UnmatchedBracketError

logger = logging.getLogger(__name__)

DEFAULT_HEAP_SIZE = 30000
COMMANDS = "><+-.,[]"

I8 = ir.IntType(8)
I32 = ir.IntType(32)
I8_PTR = I8.as_pointer()


@dataclass
class ExternalFunctions:
    putchar: ir.Function
    getchar: ir.Function
    calloc: ir.Function
    free: ir.Function

    @classmethod
    def declare(cls, module: ir.Module, size_t: ir.IntType) -> "ExternalFunctions":
        putchar = ir.Function(module, ir.FunctionType(I32, [I32]), name="putchar")
        getchar = ir.Function(module, ir.FunctionType(I32, []), name="getchar")
        calloc = ir.Function(module, ir.FunctionType(I8_PTR, [size_t, size_t]), name="calloc")
        free = ir.Function(module, ir.FunctionType(ir.VoidType(), [I8_PTR]), name="free")
        return cls(putchar=putchar, getchar=getchar, calloc=calloc, free=free)


@dataclass
class LoopRegion:
    entry: ir.Block
    after: ir.Block
    offset: int


class Codegen:
    """Emits the body of ``i32 main()`` for one Brainfuck program.

    A ``Codegen`` is used for exactly one call to :meth:`generate`; create a
    fresh instance (or use :func:`compile_module`) for every translation.
    """

    def __init__(self, module: ir.Module, size_bits: int = 64) -> None:
        self.module = module
        self.size_t = ir.IntType(size_bits)
        self.fns = ExternalFunctions.declare(module, self.size_t)
        self.function = ir.Function(module, ir.FunctionType(I32, []), name="main")
        self.builder = ir.IRBuilder(self.function.append_basic_block("entry"))
        self.counter: Optional[ir.AllocaInstr] = None
        self.mem_ptr: Optional[ir.CallInstr] = None
        self.loop_stack: List[LoopRegion] = []

    # --- Memory model ---

    def _emit_startup(self, heap_size: int) -> None:
        self.counter = self.builder.alloca(I32, name="counter_alloc")
        self.builder.store(ir.Constant(I32, 0), self.counter)

        num = ir.Constant(self.size_t, heap_size)
        size = ir.Constant(self.size_t, 1)
        self.mem_ptr = self.builder.call(self.fns.calloc, [num, size], name="calloc")

    def _cell_ptr(self) -> ir.Value:
        counter = self.builder.load(self.counter, name="counter_load")
        return self.builder.gep(self.mem_ptr, [counter], name="cell_ptr")

    # --- Primitives ---

    def _emit_move_right(self) -> None:
        counter = self.builder.load(self.counter, name="mr_counter_load")
        counter = self.builder.add(counter, ir.Constant(I32, 1), name="inc_counter")
        self.builder.store(counter, self.counter)

    def _emit_move_left(self) -> None:
        counter = self.builder.load(self.counter, name="ml_counter_load")
        counter = self.builder.sub(counter, ir.Constant(I32, 1), name="dec_counter")
        self.builder.store(counter, self.counter)

    def _emit_increment_cell(self) -> None:
        cell_ptr = self._cell_ptr()
        value = self.builder.load(cell_ptr, name="inc_load_cell")
        value = self.builder.add(value, ir.Constant(I8, 1), name="inc_value")
        self.builder.store(value, cell_ptr)

    def _emit_decrement_cell(self) -> None:
        cell_ptr = self._cell_ptr()
        value = self.builder.load(cell_ptr, name="dec_load_cell")
        value = self.builder.sub(value, ir.Constant(I8, 1), name="dec_value")
        self.builder.store(value, cell_ptr)

    def _emit_output(self) -> None:
        value = self.builder.load(self._cell_ptr(), name="outp_load_cell")
        value = self.builder.zext(value, I32, name="outp_zero_ext")
        self.builder.call(self.fns.putchar, [value], name="putchar")

    def _emit_input(self) -> None:
        cell_ptr = self._cell_ptr()
        value = self.builder.call(self.fns.getchar, [], name="getchar")
        value = self.builder.trunc(value, I8, name="inp_trunc")
        self.builder.store(value, cell_ptr)

    # --- Loops ---

    def _cell_not_zero(self) -> ir.Value:
        value = self.builder.load(self._cell_ptr(), name="loop_load_cell")
        return self.builder.icmp_unsigned("!=", value, ir.Constant(I8, 0), name="zero_cmp")

    def _emit_loop_entry(self, offset: int) -> None:
        loop_block = self.function.append_basic_block("loop")
        after_block = self.function.append_basic_block("loop_after")
        self.builder.cbranch(self._cell_not_zero(), loop_block, after_block)
        self.builder.position_at_end(loop_block)
        self.loop_stack.append(LoopRegion(loop_block, after_block, offset))

    def _emit_loop_end(self, offset: int, source: str) -> None:
        if not self.loop_stack:
            raise UnmatchedBracketError("]", offset, source)
        region = self.loop_stack.pop()
        self.builder.cbranch(self._cell_not_zero(), region.entry, region.after)
        self.builder.position_at_end(region.after)

    # --- Driver ---

    def _emit_exit(self) -> None:
        self.builder.call(self.fns.free, [self.mem_ptr])
        self.builder.ret(ir.Constant(I32, 0))

    def generate(self, heap_size: int, code: str) -> ir.Function:
        if heap_size <= 0:
            raise ValueError(f"heap size must be positive, got {heap_size}")
        self._emit_startup(heap_size)

        for offset, char in enumerate(code):
            if char == ">":
                self._emit_move_right()
            elif char == "<":
                self._emit_move_left()
            elif char == "+":
                self._emit_increment_cell()
            elif char == "-":
                self._emit_decrement_cell()
            elif char == ".":
                self._emit_output()
            elif char == ",":
                self._emit_input()
            elif char == "[":
                self._emit_loop_entry(offset)
            elif char == "]":
                self._emit_loop_end(offset, code)

        if self.loop_stack:
            raise UnmatchedBracketError("[", self.loop_stack[-1].offset, code)

        self._emit_exit()
        return self.function


def compile_module(
    name: str,
    code: str,
    heap_size: int = DEFAULT_HEAP_SIZE,
    *,
    size_bits: int = 64,
    triple: Optional[str] = None,
) -> ir.Module:
    """Translate ``code`` into a fresh module exposing ``i32 main()``."""
    module = ir.Module(name=name)
    if triple is not None:
        module.triple = triple
    codegen = Codegen(module, size_bits=size_bits)
    codegen.generate(heap_size, code)
    logger.debug(
        "translated %d source characters into %d basic blocks",
        len(code),
        len(codegen.function.blocks),
    )
    return module


__all__ = [
    "COMMANDS",
    "Codegen",
    "DEFAULT_HEAP_SIZE",
    "ExternalFunctions",
    "LoopRegion",
    "compile_module",
]
