"""Error families raised by the JMESPath engine.

Lexing, parsing and evaluation each have their own exception type so callers
can catch narrowly; all of them derive from :class:`JMESPathError`.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple


class LexErrorKind(Enum):
    UNTERMINATED = "unterminated literal"
    INVALID_ESCAPE = "invalid escape sequence"
    INVALID_CHARACTER = "invalid character"
    INVALID_LITERAL = "invalid JSON literal"


class ParseErrorKind(Enum):
    UNEXPECTED_TOKEN = "unexpected token"
    UNEXPECTED_EOF = "unexpected end of expression"
    UNMATCHED_DELIMITER = "unmatched delimiter"
    MALFORMED_SLICE = "malformed slice"
    INVALID_KEY = "invalid multi-select hash key"
    TOO_DEEP = "expression nested too deeply"


class RuntimeErrorKind(Enum):
    UNKNOWN_FUNCTION = "unknown function"
    INVALID_ARITY = "invalid arity"
    INVALID_TYPE = "invalid type"
    INVALID_SLICE = "invalid slice"
    INVALID_TYPE_FOR_SORT = "invalid type for sort"
    RECURSION_LIMIT_EXCEEDED = "recursion limit exceeded"


def line_and_column(expression: str, offset: int) -> Tuple[int, int]:
    """Return the zero based (line, column) of ``offset`` in ``expression``."""
    offset = max(0, min(offset, len(expression)))
    line = expression.count("\n", 0, offset)
    line_start = expression.rfind("\n", 0, offset) + 1
    return line, offset - line_start


def format_caret(expression: str, offset: int) -> str:
    line, column = line_and_column(expression, offset)
    source_line = expression.split("\n")[line]
    return f"{source_line}\n{' ' * column}^"


class JMESPathError(Exception):
    """Base class for every error the engine reports."""

    label = "Error"

    def __init__(self, message: str, offset: int = 0, expression: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.expression = expression

    @property
    def line(self) -> int:
        if self.expression is None:
            return 0
        return line_and_column(self.expression, self.offset)[0]

    @property
    def column(self) -> int:
        if self.expression is None:
            return self.offset
        return line_and_column(self.expression, self.offset)[1]

    def with_expression(self, expression: str) -> "JMESPathError":
        if self.expression is None:
            self.expression = expression
        return self

    def __str__(self) -> str:
        if self.expression is None:
            return f"{self.label} at offset {self.offset}: {self.message}"
        header = f"{self.label} at line {self.line}, column {self.column}: {self.message}"
        return f"{header}\n{format_caret(self.expression, self.offset)}"


class LexError(JMESPathError):
    label = "Lex error"

    def __init__(self, kind: LexErrorKind, message: str, offset: int, expression: Optional[str] = None):
        super().__init__(f"{kind.value}: {message}", offset, expression)
        self.kind = kind


class ParseError(JMESPathError):
    label = "Parse error"

    def __init__(
        self,
        kind: ParseErrorKind,
        offset: int,
        found: str,
        context: str = "",
        expression: Optional[str] = None,
    ):
        message = f"{kind.value} {found}"
        if context:
            message = f"{message}, {context}"
        super().__init__(message, offset, expression)
        self.kind = kind
        self.found = found
        self.context = context


class JMESPathRuntimeError(JMESPathError):
    label = "Runtime error"
    kind: RuntimeErrorKind


class UnknownFunctionError(JMESPathRuntimeError):
    kind = RuntimeErrorKind.UNKNOWN_FUNCTION

    def __init__(self, name: str, offset: int = 0):
        super().__init__(f"Call to undefined function {name}", offset)
        self.name = name


class InvalidArityError(JMESPathRuntimeError):
    kind = RuntimeErrorKind.INVALID_ARITY

    def __init__(self, name: str, expected: int, actual: int, variadic: bool, offset: int = 0):
        qualifier = "at least " if variadic else ""
        super().__init__(
            f"Function {name} expects {qualifier}{expected} argument(s), got {actual}",
            offset,
        )
        self.name = name
        self.expected = expected
        self.actual = actual
        self.variadic = variadic


class InvalidTypeError(JMESPathRuntimeError):
    kind = RuntimeErrorKind.INVALID_TYPE

    def __init__(self, name: str, position: int, expected: str, actual: str, offset: int = 0):
        super().__init__(
            f"Argument {position} of {name} expects type {expected}, got {actual}",
            offset,
        )
        self.name = name
        self.position = position
        self.expected = expected
        self.actual = actual


class InvalidSliceError(JMESPathRuntimeError):
    kind = RuntimeErrorKind.INVALID_SLICE

    def __init__(self, offset: int = 0):
        super().__init__("Slice step cannot be 0", offset)


class InvalidTypeForSortError(JMESPathRuntimeError):
    kind = RuntimeErrorKind.INVALID_TYPE_FOR_SORT

    def __init__(self, name: str, actual: str, offset: int = 0):
        super().__init__(
            f"{name} requires keys that are all numbers or all strings, got {actual}",
            offset,
        )
        self.name = name
        self.actual = actual


class RecursionLimitExceededError(JMESPathRuntimeError):
    kind = RuntimeErrorKind.RECURSION_LIMIT_EXCEEDED

    def __init__(self, limit: int, offset: int = 0):
        super().__init__(f"Maximum evaluation depth of {limit} exceeded", offset)
        self.limit = limit


__all__ = [
    "JMESPathError",
    "LexError",
    "LexErrorKind",
    "ParseError",
    "ParseErrorKind",
    "JMESPathRuntimeError",
    "RuntimeErrorKind",
    "UnknownFunctionError",
    "InvalidArityError",
    "InvalidTypeError",
    "InvalidSliceError",
    "InvalidTypeForSortError",
    "RecursionLimitExceededError",
    "format_caret",
    "line_and_column",
]
