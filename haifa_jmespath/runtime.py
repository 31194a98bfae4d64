from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Optional, Union

from .ast import Node
from .errors import JMESPathError, LexError, LexErrorKind, RecursionLimitExceededError
from .functions import FunctionRegistry, default_registry
from .interpreter import DEFAULT_RECURSION_LIMIT, Context, interpret
from .parser import Parser
from .values import Value

logger = logging.getLogger(__name__)


class Expression:
    """A compiled JMESPath expression, reusable against any number of inputs."""

    __slots__ = ("_source", "_ast", "_registry", "_recursion_limit")

    def __init__(
        self,
        source: str,
        ast: Node,
        registry: Optional[FunctionRegistry] = None,
        recursion_limit: int = DEFAULT_RECURSION_LIMIT,
    ) -> None:
        if recursion_limit < 1:
            raise ValueError("recursion_limit must be at least 1")
        self._source = source
        self._ast = ast
        self._registry = registry if registry is not None else default_registry()
        self._recursion_limit = recursion_limit

    @property
    def source(self) -> str:
        return self._source

    @property
    def ast(self) -> Node:
        return self._ast

    @property
    def registry(self) -> FunctionRegistry:
        return self._registry

    @property
    def recursion_limit(self) -> int:
        return self._recursion_limit

    def search(self, data: Any) -> Any:
        """Search plain Python data and return plain Python data."""
        try:
            value = Value.from_python(data)
        except RecursionError:
            raise self._too_deep(0) from None
        result = self.search_value(value)
        try:
            return result.to_python()
        except RecursionError:
            raise self._too_deep(0) from None

    def search_value(self, value: Value) -> Value:
        ctx = Context(self._source, self._registry, self._recursion_limit)
        try:
            return interpret(self._ast, value, ctx)
        except JMESPathError as exc:
            raise exc.with_expression(self._source)
        except RecursionError:
            raise self._too_deep(ctx.offset) from None

    def _too_deep(self, offset: int) -> JMESPathError:
        return RecursionLimitExceededError(self._recursion_limit, offset).with_expression(self._source)

    def __str__(self) -> str:
        return self._source

    def __repr__(self) -> str:
        return f"Expression({self._source!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        return self._source == other._source

    def __hash__(self) -> int:
        return hash(self._source)


class ExpressionBuilder:
    """Builds an :class:`Expression` with a custom AST, registry or depth limit."""

    def __init__(self, expression: str) -> None:
        self.expression = expression
        self._ast: Optional[Node] = None
        self._registry: Optional[FunctionRegistry] = None
        self._recursion_limit = DEFAULT_RECURSION_LIMIT

    def with_ast(self, ast: Node) -> "ExpressionBuilder":
        self._ast = ast
        return self

    def with_registry(self, registry: FunctionRegistry) -> "ExpressionBuilder":
        self._registry = registry
        return self

    def with_recursion_limit(self, limit: int) -> "ExpressionBuilder":
        self._recursion_limit = limit
        return self

    def build(self) -> Expression:
        if self._ast is not None:
            return Expression(self.expression, self._ast, self._registry, self._recursion_limit)
        return compile(self.expression, registry=self._registry, recursion_limit=self._recursion_limit)


def _decode(expression: Union[str, bytes]) -> str:
    if isinstance(expression, str):
        return expression
    try:
        return expression.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise LexError(LexErrorKind.INVALID_CHARACTER, "invalid UTF-8", exc.start) from exc


def compile(
    expression: Union[str, bytes],
    *,
    registry: Optional[FunctionRegistry] = None,
    recursion_limit: int = DEFAULT_RECURSION_LIMIT,
) -> Expression:
    """Lex and parse ``expression``; raises LexError or ParseError."""
    source = _decode(expression)
    ast = Parser.parse_source(source)
    logger.debug("compiled expression %r", source)
    return Expression(source, ast, registry, recursion_limit)


@lru_cache(maxsize=128)
def _compile_cached(expression: str) -> Expression:
    return compile(expression)


def search(expression: str, data: Any) -> Any:
    """Compile (cached per expression string) and search ``data`` in one step."""
    return _compile_cached(expression).search(data)


__all__ = ["Expression", "ExpressionBuilder", "compile", "search"]
