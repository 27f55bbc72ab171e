import unittest

from bfnative import BrainfuckInterpreter, StepLimitExceeded, UnmatchedBracketError
from bfnative.interpreter import EOF_VALUE

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


class BrainfuckInterpreterTests(unittest.TestCase):
    def test_simple_output(self) -> None:
        interpreter = BrainfuckInterpreter()
        program = "+" * 65 + "."
        output = interpreter.run(program, max_steps=1000)
        self.assertEqual(output, b"A")

    def test_hello_world(self) -> None:
        output = BrainfuckInterpreter().run(HELLO_WORLD, max_steps=100_000)
        self.assertEqual(output, b"Hello World!\n")

    def test_step_limit_exceeded(self) -> None:
        interpreter = BrainfuckInterpreter()
        with self.assertRaises(StepLimitExceeded):
            interpreter.run("+[]", max_steps=10)

    def test_echo_input(self) -> None:
        self.assertEqual(BrainfuckInterpreter().run(",.", input_data=[65]), b"A")

    def test_end_of_input_stores_255(self) -> None:
        interpreter = BrainfuckInterpreter()
        interpreter.run(",")
        self.assertEqual(interpreter.tape[0], EOF_VALUE)

    def test_increment_decrement_round_trip_wraps(self) -> None:
        program = ("+-." + "-+." + "+") * 256
        output = BrainfuckInterpreter().run(program)
        expected = bytes(value for value in range(256) for _ in range(2))
        self.assertEqual(output, expected)

    def test_pointer_round_trip(self) -> None:
        interpreter = BrainfuckInterpreter(tape_length=64)
        for k in (0, 1, 17, 63):
            with self.subTest(k=k):
                interpreter.run(">" * k + "<" * k)
                self.assertEqual(interpreter.pointer, 0)

    def test_zero_cell_skips_loop(self) -> None:
        self.assertEqual(BrainfuckInterpreter().run("[.+]+."), b"\x01")

    def test_pointer_past_tape_end(self) -> None:
        with self.assertRaises(IndexError):
            BrainfuckInterpreter(tape_length=2).run(">>")

    def test_pointer_before_tape_start(self) -> None:
        with self.assertRaises(IndexError):
            BrainfuckInterpreter().run("<")

    def test_unmatched_brackets(self) -> None:
        with self.assertRaises(UnmatchedBracketError):
            BrainfuckInterpreter().run("]")
        with self.assertRaises(UnmatchedBracketError):
            BrainfuckInterpreter().run("[[]")

    def test_reset_between_runs(self) -> None:
        interpreter = BrainfuckInterpreter()
        interpreter.run("+++>")
        interpreter.run("")
        self.assertEqual(interpreter.pointer, 0)
        self.assertEqual(interpreter.tape[0], 0)
        self.assertEqual(interpreter.steps, 0)


if __name__ == "__main__":
    unittest.main()
