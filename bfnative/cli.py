from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterator, Optional

from .backend import LLVMBackend
from .config import CompileOptions
from .errors import CompileError
from .interpreter import BrainfuckInterpreter
from .linker import LINKERS
from .toolchain import build, translate

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    # commands are ASCII; latin-1 maps any other byte to an ignored character
    return source_path.read_bytes().decode("latin-1")


def _read_input(data: Optional[str]) -> Iterator[int]:
    if data is not None:
        return iter(data.encode("utf-8"))
    stdin = getattr(sys.stdin, "buffer", None)
    if stdin is None:
        chars = iter(lambda: sys.stdin.read(1), "")
        return (byte for char in chars for byte in char.encode("utf-8"))
    return (chunk[0] for chunk in iter(lambda: stdin.read(1), b""))


def _write_output(data: bytes) -> None:
    stdout = getattr(sys.stdout, "buffer", None)
    if stdout is None:
        sys.stdout.write(data.decode("latin-1"))
        return
    stdout.write(data)
    stdout.flush()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bfnative", description="Brainfuck compiler")
    parser.add_argument("source", help="Brainfuck source file")
    parser.add_argument(
        "-c",
        "--compile",
        action="store_true",
        help="Create object file only",
    )
    parser.add_argument("-o", "--output", metavar="FILE", help="Sets output file")
    parser.add_argument(
        "-O",
        "--optimize",
        metavar="LEVEL",
        help="Sets optimization level 0-3 (default 2)",
    )
    parser.add_argument(
        "-s",
        "--heap-size",
        metavar="BYTES",
        help="Sets heap size in bytes (default 30000)",
    )
    parser.add_argument(
        "--linker",
        default="ld",
        help=f"Linker used for executables ({', '.join(sorted(LINKERS))}; default: ld)",
    )
    parser.add_argument(
        "--emit-llvm",
        action="store_true",
        help="Write textual LLVM IR (<name>.ll) instead of an object file",
    )
    parser.add_argument(
        "--interpret",
        action="store_true",
        help="Run the program with the reference interpreter instead of compiling",
    )
    parser.add_argument(
        "--input",
        help="Input supplied to the interpreted program (default: read stdin)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _emit_llvm(source_text: str, source_path: Path, options: CompileOptions) -> Path:
    backend = LLVMBackend(options.opt_level)
    module = translate(source_text, options, name=source_path.stem, backend=backend)
    text = backend.optimize(module) if options.opt_level > 0 else str(module)
    output_path = Path(options.output) if options.output else Path(source_path.stem).with_suffix(".ll")
    output_path.write_text(text, encoding="utf-8")
    return output_path


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = CompileOptions.create(
            heap_size=args.heap_size,
            opt_level=args.optimize,
            output=args.output,
            compile_only=args.compile,
            linker=args.linker,
        )
        source_text = _read_source(args.source)
    except OSError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except CompileError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    source_path = Path(args.source)
    try:
        if args.interpret:
            interpreter = BrainfuckInterpreter(tape_length=options.heap_size)
            _write_output(interpreter.run(source_text, input_data=_read_input(args.input)))
            return 0
        if args.emit_llvm:
            artifact = _emit_llvm(source_text, source_path, options)
        else:
            artifact = build(source_text, source_path, options)
    except CompileError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except IndexError as exc:
        print(f"runtime error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    logger.info("wrote %s", artifact)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
