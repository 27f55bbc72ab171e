from pathlib import Path
import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from bfnative.cli import main as cli_main


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)
        self._cwd = os.getcwd()
        os.chdir(self.tmp_path)

    def tearDown(self) -> None:
        os.chdir(self._cwd)
        self._tmp.cleanup()

    def _write_source(self, content: str, name: str = "program.bf") -> Path:
        path = self.tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    def _run(self, argv: list) -> tuple:
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            exit_code = cli_main(argv)
        return exit_code, stdout.getvalue(), stderr.getvalue()

    def test_interpret_outputs_program_result(self) -> None:
        source_path = self._write_source("+" * 65 + ".")
        with mock.patch("sys.stdin", io.StringIO("")):
            exit_code, stdout, _ = self._run([str(source_path), "--interpret"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "A")

    def test_interpret_leaves_stdin_unread_without_input_commands(self) -> None:
        source_path = self._write_source("+" * 66 + ".")
        stdin = io.StringIO("untouched")
        with mock.patch("sys.stdin", stdin):
            exit_code, stdout, _ = self._run([str(source_path), "--interpret"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "B")
        self.assertEqual(stdin.read(), "untouched")

    def test_interpret_reads_stdin_one_byte_per_input_command(self) -> None:
        source_path = self._write_source(",.")
        stdin = io.StringIO("QR")
        with mock.patch("sys.stdin", stdin):
            exit_code, stdout, _ = self._run([str(source_path), "--interpret"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "Q")
        self.assertEqual(stdin.read(), "R")

    def test_source_comments_may_hold_non_utf8_bytes(self) -> None:
        source_path = self.tmp_path / "latin.bf"
        source_path.write_bytes(b"+" * 65 + b" caf\xe9 comment .")
        exit_code, stdout, stderr = self._run([str(source_path), "--interpret", "--input", ""])
        self.assertEqual(exit_code, 0, stderr)
        self.assertEqual(stdout, "A")

    def test_non_utf8_source_compiles(self) -> None:
        source_path = self.tmp_path / "latin.bf"
        source_path.write_bytes(b"+\xff\xfe[-].")
        exit_code, _, stderr = self._run([str(source_path), "--emit-llvm", "-O", "0"])
        self.assertEqual(exit_code, 0, stderr)
        self.assertIn("putchar", (self.tmp_path / "latin.ll").read_text(encoding="utf-8"))

    def test_interpret_reads_supplied_input(self) -> None:
        source_path = self._write_source(",.")
        exit_code, stdout, _ = self._run([str(source_path), "--interpret", "--input", "Z"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout, "Z")

    def test_interpret_reports_pointer_underflow(self) -> None:
        source_path = self._write_source("<")
        exit_code, _, stderr = self._run([str(source_path), "--interpret", "--input", ""])
        self.assertEqual(exit_code, 1)
        self.assertIn("runtime error", stderr)

    def test_emit_llvm_writes_module(self) -> None:
        source_path = self._write_source("+[-].")
        exit_code, _, _ = self._run([str(source_path), "--emit-llvm", "-O", "0"])
        self.assertEqual(exit_code, 0)
        text = (self.tmp_path / "program.ll").read_text(encoding="utf-8")
        self.assertIn('define i32 @"main"()', text)
        self.assertIn("calloc", text)

    def test_emit_llvm_optimized_to_named_output(self) -> None:
        source_path = self._write_source("+[-].")
        output_path = self.tmp_path / "out.ll"
        exit_code, _, _ = self._run([str(source_path), "--emit-llvm", "-o", str(output_path)])
        self.assertEqual(exit_code, 0)
        self.assertIn("main", output_path.read_text(encoding="utf-8"))

    def test_compile_only_writes_object(self) -> None:
        source_path = self._write_source("+.")
        exit_code, _, stderr = self._run([str(source_path), "-c", "-s", "100"])
        self.assertEqual(exit_code, 0, stderr)
        self.assertGreater((self.tmp_path / "program.o").stat().st_size, 0)
        self.assertFalse((self.tmp_path / "program").exists())

    def test_missing_file_errors(self) -> None:
        exit_code, _, stderr = self._run(["does_not_exist.bf"])
        self.assertEqual(exit_code, 1)
        self.assertIn("Source file not found", stderr)

    def test_invalid_optimization_level(self) -> None:
        source_path = self._write_source("+")
        exit_code, _, stderr = self._run([str(source_path), "-O", "7"])
        self.assertEqual(exit_code, 1)
        self.assertIn("opt_level", stderr)

    def test_invalid_heap_size(self) -> None:
        source_path = self._write_source("+")
        exit_code, _, stderr = self._run([str(source_path), "--heap-size", "lots"])
        self.assertEqual(exit_code, 1)
        self.assertIn("heap_size", stderr)

    def test_unmatched_bracket_aborts(self) -> None:
        source_path = self._write_source("+\n+]")
        exit_code, _, stderr = self._run([str(source_path), "-c"])
        self.assertEqual(exit_code, 1)
        self.assertIn("Unmatched ']' at line 2, column 2", stderr)
        self.assertFalse((self.tmp_path / "program.o").exists())

    def test_link_failure_cleans_object(self) -> None:
        source_path = self._write_source("+.")
        empty_bin = self.tmp_path / "empty-bin"
        empty_bin.mkdir()
        with mock.patch.dict(os.environ, {"PATH": str(empty_bin)}):
            exit_code, _, stderr = self._run([str(source_path), "--linker", "cc", "-o", "prog"])
        self.assertEqual(exit_code, 1)
        self.assertIn("error: C compiler 'cc' not found", stderr)
        self.assertFalse((self.tmp_path / "program.o").exists())
        self.assertFalse((self.tmp_path / "prog").exists())


if __name__ == "__main__":
    unittest.main()
