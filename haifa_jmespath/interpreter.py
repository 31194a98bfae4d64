"""Tree-walking evaluator for parsed JMESPath expressions.

``interpret`` dispatches on the node type through ``_HANDLERS``; every handler
takes ``(node, value, ctx)`` and returns a new :class:`Value`. Evaluation never
mutates a value, so handlers return sub-values as-is instead of copying them.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Type

from .ast import (
    And,
    Comparison,
    CurrentNode,
    ExpressionRef,
    Field,
    FilterProjection,
    Flatten,
    FunctionCall,
    Identity,
    Index,
    ListProjection,
    Literal,
    MultiSelectHash,
    MultiSelectList,
    Node,
    Not,
    ObjectProjection,
    Or,
    Pipe,
    Slice,
    Subexpr,
)
from .errors import InvalidSliceError, RecursionLimitExceededError
from .values import FALSE, NULL, TRUE, Value, ValueType

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .functions import FunctionRegistry

logger = logging.getLogger(__name__)

DEFAULT_RECURSION_LIMIT = 256


class Context:
    """Per-search evaluation state: function registry, depth guard, error offset."""

    def __init__(
        self,
        expression: str,
        registry: "FunctionRegistry",
        recursion_limit: int = DEFAULT_RECURSION_LIMIT,
    ) -> None:
        self.expression = expression
        self.registry = registry
        self.recursion_limit = recursion_limit
        self.depth = 0
        self.offset = 0


def interpret(node: Node, value: Value, ctx: Context) -> Value:
    """Evaluate ``node`` against ``value``."""
    handler = _HANDLERS.get(type(node))
    if handler is None:
        raise TypeError(f"Unsupported AST node {type(node).__name__}")
    ctx.depth += 1
    try:
        if ctx.depth > ctx.recursion_limit:
            logger.debug("recursion limit %d exceeded at offset %d", ctx.recursion_limit, node.offset)
            raise RecursionLimitExceededError(ctx.recursion_limit, node.offset)
        return handler(node, value, ctx)
    finally:
        ctx.depth -= 1


def _visit_identity(node: Node, value: Value, ctx: Context) -> Value:
    return value


def _visit_field(node: Field, value: Value, ctx: Context) -> Value:
    return value.get_field(node.name)


def _visit_index(node: Index, value: Value, ctx: Context) -> Value:
    return value.get_index(node.index)


def _visit_slice(node: Slice, value: Value, ctx: Context) -> Value:
    if node.step == 0:
        raise InvalidSliceError(node.offset)
    return value.slice(node.start, node.stop, node.step)


def _visit_literal(node: Literal, value: Value, ctx: Context) -> Value:
    return node.value


def _visit_subexpr(node: Subexpr, value: Value, ctx: Context) -> Value:
    return interpret(node.right, interpret(node.left, value, ctx), ctx)


def _visit_pipe(node: Pipe, value: Value, ctx: Context) -> Value:
    return interpret(node.right, interpret(node.left, value, ctx), ctx)


def _visit_flatten(node: Flatten, value: Value, ctx: Context) -> Value:
    base = interpret(node.node, value, ctx)
    if base.type is not ValueType.ARRAY:
        return NULL
    merged: List[Value] = []
    for element in base.payload:
        if element.type is ValueType.ARRAY:
            merged.extend(element.payload)
        else:
            merged.append(element)
    return Value.array(merged)


def _project(elements, right: Node, ctx: Context) -> Value:
    collected: List[Value] = []
    for element in elements:
        result = interpret(right, element, ctx)
        if result.type is not ValueType.NULL:
            collected.append(result)
    return Value.array(collected)


def _visit_list_projection(node: ListProjection, value: Value, ctx: Context) -> Value:
    base = interpret(node.left, value, ctx)
    if not base.is_array():
        return NULL
    return _project(base.payload, node.right, ctx)


def _visit_object_projection(node: ObjectProjection, value: Value, ctx: Context) -> Value:
    base = interpret(node.left, value, ctx)
    if not base.is_object():
        return NULL
    return _project(base.payload.values(), node.right, ctx)


def _visit_filter_projection(node: FilterProjection, value: Value, ctx: Context) -> Value:
    base = interpret(node.left, value, ctx)
    if base.type is not ValueType.ARRAY:
        return NULL
    kept = [
        element
        for element in base.payload
        if interpret(node.predicate, element, ctx).is_truthy()
    ]
    return _project(kept, node.right, ctx)


def _visit_multi_select_list(node: MultiSelectList, value: Value, ctx: Context) -> Value:
    if value.is_null():
        return NULL
    return Value.array(interpret(element, value, ctx) for element in node.elements)


def _visit_multi_select_hash(node: MultiSelectHash, value: Value, ctx: Context) -> Value:
    if value.is_null():
        return NULL
    return Value.object({pair.key: interpret(pair.value, value, ctx) for pair in node.pairs})


_ORDERING: Dict[str, Callable[[float, float], bool]] = {
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def _visit_comparison(node: Comparison, value: Value, ctx: Context) -> Value:
    left = interpret(node.left, value, ctx)
    right = interpret(node.right, value, ctx)
    if node.comparator == "==":
        return Value.boolean(left == right)
    if node.comparator == "!=":
        return Value.boolean(left != right)
    if not (left.is_number() and right.is_number()):
        return NULL
    return Value.boolean(_ORDERING[node.comparator](left.payload, right.payload))


def _visit_and(node: And, value: Value, ctx: Context) -> Value:
    left = interpret(node.left, value, ctx)
    if not left.is_truthy():
        return left
    return interpret(node.right, value, ctx)


def _visit_or(node: Or, value: Value, ctx: Context) -> Value:
    left = interpret(node.left, value, ctx)
    if left.is_truthy():
        return left
    return interpret(node.right, value, ctx)


def _visit_not(node: Not, value: Value, ctx: Context) -> Value:
    return FALSE if interpret(node.node, value, ctx).is_truthy() else TRUE


def _visit_expression_ref(node: ExpressionRef, value: Value, ctx: Context) -> Value:
    return Value.expref(node.node, value)


def _visit_function_call(node: FunctionCall, value: Value, ctx: Context) -> Value:
    args = [interpret(arg, value, ctx) for arg in node.args]
    ctx.offset = node.offset
    return ctx.registry.call(node.name, args, ctx)


_HANDLERS: Dict[Type[Node], Callable[[Node, Value, Context], Value]] = {
    Identity: _visit_identity,
    CurrentNode: _visit_identity,
    Field: _visit_field,
    Index: _visit_index,
    Slice: _visit_slice,
    Literal: _visit_literal,
    Subexpr: _visit_subexpr,
    Pipe: _visit_pipe,
    Flatten: _visit_flatten,
    ListProjection: _visit_list_projection,
    ObjectProjection: _visit_object_projection,
    FilterProjection: _visit_filter_projection,
    MultiSelectList: _visit_multi_select_list,
    MultiSelectHash: _visit_multi_select_hash,
    Comparison: _visit_comparison,
    And: _visit_and,
    Or: _visit_or,
    Not: _visit_not,
    ExpressionRef: _visit_expression_ref,
    FunctionCall: _visit_function_call,
}


__all__ = ["Context", "interpret", "DEFAULT_RECURSION_LIMIT"]
