from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from .codegen import DEFAULT_HEAP_SIZE
from .errors import UnmatchedBracketError

EOF_VALUE = 255


class StepLimitExceeded(RuntimeError):
    """Raised when Brainfuck execution exceeds the configured step budget."""


@dataclass
class BrainfuckInterpreter:
    """Executes Brainfuck directly with the same cell semantics as compiled code.

    Cells are 8-bit and wrap; reading past the end of input stores 255, which
    is what truncating ``getchar``'s EOF result yields in the compiled program.
    """

    tape_length: int = DEFAULT_HEAP_SIZE

    tape: bytearray = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    output_buffer: bytearray = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.tape = bytearray(self.tape_length)
        self.pointer = 0
        self.output_buffer = bytearray()
        self.steps = 0

    def run(
        self,
        code: str,
        input_data: Optional[Iterable[int]] = None,
        max_steps: Optional[int] = None,
    ) -> bytes:
        self.reset()
        jump_map = self._build_jump_map(code)
        input_iter = iter(input_data or ())
        pc = 0
        code_length = len(code)

        while pc < code_length:
            if max_steps is not None and self.steps >= max_steps:
                raise StepLimitExceeded("Brainfuck program exceeded allowed step count")
            pc = self._execute_instruction(code[pc], pc, jump_map, input_iter)
            self.steps += 1
        return bytes(self.output_buffer)

    def _execute_instruction(
        self,
        command: str,
        pc: int,
        jump_map: Dict[int, int],
        input_iter: Iterator[int],
    ) -> int:
        new_pc = pc + 1
        if command == ">":
            self.pointer += 1
            if self.pointer >= self.tape_length:
                raise IndexError("Pointer moved beyond the tape length.")
        elif command == "<":
            self.pointer -= 1
            if self.pointer < 0:
                raise IndexError("Pointer moved before start of tape.")
        elif command == "+":
            self.tape[self.pointer] = (self.tape[self.pointer] + 1) % 256
        elif command == "-":
            self.tape[self.pointer] = (self.tape[self.pointer] - 1) % 256
        elif command == ".":
            self.output_buffer.append(self.tape[self.pointer])
        elif command == ",":
            self.tape[self.pointer] = next(input_iter, EOF_VALUE) % 256
        elif command == "[":
            if self.tape[self.pointer] == 0:
                new_pc = jump_map[pc] + 1
        elif command == "]":
            if self.tape[self.pointer] != 0:
                new_pc = jump_map[pc] + 1
        return new_pc

    def _build_jump_map(self, code: str) -> Dict[int, int]:
        jump_map: Dict[int, int] = {}
        stack: List[int] = []
        for index, char in enumerate(code):
            if char == "[":
                stack.append(index)
            elif char == "]":
                if not stack:
                    raise UnmatchedBracketError("]", index, code)
                start = stack.pop()
                jump_map[start] = index
                jump_map[index] = start
        if stack:
            raise UnmatchedBracketError("[", stack.pop(), code)
        return jump_map


__all__ = [
    "BrainfuckInterpreter",
    "EOF_VALUE",
    "StepLimitExceeded",
]
