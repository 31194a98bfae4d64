import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from haifa_jmespath.cli import main


def _run(argv, stdin_data="{}"):
    stdout_buffer = io.StringIO()
    stderr_buffer = io.StringIO()
    with mock.patch("sys.stdin", io.StringIO(stdin_data)):
        with redirect_stdout(stdout_buffer), redirect_stderr(stderr_buffer):
            exit_code = main(argv)
    return exit_code, stdout_buffer.getvalue(), stderr_buffer.getvalue()


class TestJMESPathCLI(unittest.TestCase):
    def test_cli_reads_from_stdin(self):
        exit_code, out, _ = _run(["foo.bar"], '{"foo": {"bar": [1, 2]}}\n')
        self.assertEqual(exit_code, 0)
        self.assertEqual(json.loads(out), [1, 2])
        self.assertEqual(out.strip().splitlines(), ["[", "  1,", "  2", "]"])

    def test_cli_compact_output(self):
        exit_code, out, _ = _run(["-c", "{a: a, b: b}"], '{"a": 1, "b": [true]}')
        self.assertEqual(exit_code, 0)
        self.assertEqual(out.strip(), '{"a":1,"b":[true]}')

    def test_cli_raw_output(self):
        exit_code, out, _ = _run(["-r", "name"], '{"name": "haifa"}')
        self.assertEqual(exit_code, 0)
        self.assertEqual(out.strip(), "haifa")

    def test_cli_reads_from_file(self):
        payload = {"items": [{"v": 1}, {"v": 2}]}
        with tempfile.NamedTemporaryFile("w", delete=False, encoding="utf-8", suffix=".json") as tmp:
            json.dump(payload, tmp)
            tmp_path = tmp.name
        try:
            exit_code, out, _ = _run(["-c", "items[*].v", "--filename", tmp_path])
            self.assertEqual(exit_code, 0)
            self.assertEqual(out.strip(), "[1,2]")
        finally:
            os.remove(tmp_path)

    def test_cli_reads_expression_file(self):
        with tempfile.NamedTemporaryFile("w", delete=False, encoding="utf-8") as tmp:
            tmp.write("length(items)\n")
            expr_path = tmp.name
        try:
            exit_code, out, _ = _run(["--expr-file", expr_path], '{"items": [1, 2, 3]}')
            self.assertEqual(exit_code, 0)
            self.assertEqual(out.strip(), "3")
        finally:
            os.remove(expr_path)

    def test_cli_prints_ast(self):
        exit_code, out, _ = _run(["--ast", "foo.bar"])
        self.assertEqual(exit_code, 0)
        self.assertEqual(out.strip().splitlines(), ["Subexpr", "  Field 'foo'", "  Field 'bar'"])

    def test_cli_reports_parse_error(self):
        exit_code, out, err = _run(["foo."])
        self.assertEqual(exit_code, 1)
        self.assertEqual(out, "")
        self.assertIn("Parse error", err)
        self.assertIn("foo.\n    ^", err)

    def test_cli_reports_runtime_error(self):
        exit_code, _, err = _run(["abs(name)"], '{"name": "x"}')
        self.assertEqual(exit_code, 1)
        self.assertIn("Runtime error", err)
        self.assertIn("expects type number, got string", err)

    def test_cli_reports_json_error(self):
        exit_code, _, err = _run(["foo"], "not-json")
        self.assertEqual(exit_code, 1)
        self.assertIn("Failed to parse JSON", err)

    def test_cli_reports_deeply_nested_input(self):
        exit_code, _, err = _run(["@"], "[" * 100000 + "]" * 100000)
        self.assertEqual(exit_code, 1)
        self.assertIn("nested too deeply", err)

    def test_cli_missing_expression(self):
        exit_code, _, err = _run([])
        self.assertEqual(exit_code, 1)
        self.assertIn("Missing expression", err)

    def test_cli_missing_input_file(self):
        exit_code, _, err = _run(["foo", "-f", "/nonexistent/input.json"])
        self.assertEqual(exit_code, 1)
        self.assertIn("input.json", err)

    def test_cli_recursion_limit(self):
        exit_code, _, err = _run(["--recursion-limit", "2", "a.b.c"], '{"a": {"b": {"c": 1}}}')
        self.assertEqual(exit_code, 1)
        self.assertIn("Maximum evaluation depth of 2 exceeded", err)


if __name__ == "__main__":
    unittest.main()
