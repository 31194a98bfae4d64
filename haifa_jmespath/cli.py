import argparse
import json
import logging
import sys
from typing import List, Optional

from .ast import format_tree
from .errors import JMESPathError
from .runtime import compile
from .values import Value


def _load_json_from_source(path: Optional[str]) -> str:
    if path:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    return sys.stdin.read()


def _read_expression(args: argparse.Namespace) -> Optional[str]:
    if args.expr_file:
        with open(args.expr_file, "r", encoding="utf-8") as f:
            return f.read().strip()
    return args.expression


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="haifa-jp", description="Run JMESPath expressions on JSON input")
    parser.add_argument("expression", nargs="?", help="JMESPath expression")
    parser.add_argument("--expr-file", "-e", dest="expr_file", help="Read the expression from a file")
    parser.add_argument("--filename", "-f", dest="input_path", help="Path to JSON input file (default: stdin)")
    parser.add_argument("--ast", action="store_true", help="Print the parsed AST instead of searching")
    parser.add_argument("-c", "--compact-output", action="store_true", help="Compact JSON output (no spaces)")
    parser.add_argument("-r", "--raw-output", action="store_true", help="Output strings without JSON quotes")
    parser.add_argument(
        "--recursion-limit",
        type=int,
        default=None,
        help="Maximum evaluation depth before the search is aborted",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and print stack traces on failure",
    )
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        source = _read_expression(args)
        if not source:
            print("Missing expression (or --expr-file)", file=sys.stderr)
            return 1

        options = {}
        if args.recursion_limit is not None:
            options["recursion_limit"] = args.recursion_limit
        expression = compile(source, **options)

        if args.ast:
            print(format_tree(expression.ast))
            return 0

        data = Value.from_json(_load_json_from_source(args.input_path))
        result = expression.search_value(data)
        if args.raw_output and result.is_string():
            print(result.payload)
        elif args.compact_output:
            print(result.to_json())
        else:
            print(result.to_json(indent=2))
        return 0
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except json.JSONDecodeError as exc:
        print(f"Failed to parse JSON input: {exc}", file=sys.stderr)
        return 1
    except RecursionError:
        print("JSON document is nested too deeply", file=sys.stderr)
        return 1
    except JMESPathError as exc:
        if args.debug:
            import traceback

            traceback.print_exc()
        else:
            print(str(exc), file=sys.stderr)
        return 1
    except (TypeError, ValueError) as exc:
        if args.debug:
            import traceback

            traceback.print_exc()
        else:
            print(f"JMESPath search failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
