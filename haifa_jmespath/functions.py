"""Function registry and the standard JMESPath function library.

Every function declares a :class:`Signature`; the registry checks arity and
argument types against it before the function body runs, so built-ins can
assume well-typed arguments.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union as TypingUnion

from .errors import (
    InvalidArityError,
    InvalidTypeError,
    InvalidTypeForSortError,
    UnknownFunctionError,
)
from .interpreter import Context, interpret
from .values import NULL, Value, ValueType

logger = logging.getLogger(__name__)


class ArgumentType(Enum):
    ANY = "any"
    ARRAY = "array"
    ARRAY_NUMBER = "array[number]"
    ARRAY_STRING = "array[string]"
    BOOLEAN = "boolean"
    EXPREF = "expref"
    NUMBER = "number"
    OBJECT = "object"
    STRING = "string"
    NULL = "null"

    def accepts(self, value: Value) -> bool:
        if self is ArgumentType.ANY:
            return True
        if self is ArgumentType.ARRAY_NUMBER:
            return value.type is ValueType.ARRAY and all(
                item.type is ValueType.NUMBER for item in value.payload
            )
        if self is ArgumentType.ARRAY_STRING:
            return value.type is ValueType.ARRAY and all(
                item.type is ValueType.STRING for item in value.payload
            )
        return value.type.value == self.value

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Union:
    """An argument position accepting any of several types, e.g. ``string|array``."""

    types: Tuple[ArgumentType, ...]

    def __init__(self, *types: ArgumentType) -> None:
        if not types:
            raise TypeError("Union needs at least one ArgumentType")
        object.__setattr__(self, "types", tuple(types))

    def accepts(self, value: Value) -> bool:
        return any(option.accepts(value) for option in self.types)

    def __str__(self) -> str:
        return "|".join(str(option) for option in self.types)


ArgumentKind = TypingUnion[ArgumentType, Union]


def _check_argument_type(expected: object) -> None:
    if isinstance(expected, Union):
        for option in expected.types:
            _check_argument_type(option)
        return
    if not isinstance(expected, ArgumentType):
        raise TypeError(f"argument types must be ArgumentType or Union, got {expected!r}")


class Signature:
    """Declared arity and per-position argument types of a function."""

    def __init__(
        self,
        inputs: Sequence[ArgumentKind],
        variadic: Optional[ArgumentKind] = None,
        output: ArgumentKind = ArgumentType.ANY,
    ) -> None:
        for expected in inputs:
            _check_argument_type(expected)
        if variadic is not None:
            _check_argument_type(variadic)
        _check_argument_type(output)
        self.inputs = tuple(inputs)
        self.variadic = variadic
        self.output = output

    @property
    def min_arity(self) -> int:
        return len(self.inputs)

    @property
    def max_arity(self) -> Optional[int]:
        return None if self.variadic is not None else len(self.inputs)

    def validate(self, name: str, args: Sequence[Value], offset: int = 0) -> None:
        count = len(args)
        if count < self.min_arity or (self.variadic is None and count > self.min_arity):
            raise InvalidArityError(name, self.min_arity, count, self.variadic is not None, offset)
        for position, arg in enumerate(args):
            expected = self.inputs[position] if position < len(self.inputs) else self.variadic
            if not expected.accepts(arg):
                raise InvalidTypeError(name, position, str(expected), arg.type_name, offset)

    def __repr__(self) -> str:
        parts = [str(option) for option in self.inputs]
        if self.variadic is not None:
            parts.append(f"{self.variadic}...")
        return f"Signature(({', '.join(parts)}) -> {self.output})"


class Function:
    """A callable JMESPath function: a signature plus ``evaluate``."""

    signature: Signature

    def evaluate(self, args: Sequence[Value], ctx: Context) -> Value:
        raise NotImplementedError


class CustomFunction(Function):
    """Wraps a host callable ``func(args, ctx) -> Value``."""

    __slots__ = ("signature", "func", "doc")

    def __init__(self, signature: Signature, func: Callable[[Sequence[Value], Context], Value], doc: str = ""):
        if not isinstance(signature, Signature):
            raise TypeError("signature must be a Signature")
        if not callable(func):
            raise TypeError("func must be callable")
        self.signature = signature
        self.func = func
        self.doc = doc

    def evaluate(self, args: Sequence[Value], ctx: Context) -> Value:
        return Value.from_python(self.func(args, ctx))

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<CustomFunction {self.signature!r}>"


class BuiltinFunction(Function):
    __slots__ = ("name", "signature", "func", "doc")

    def __init__(self, name: str, signature: Signature, func: Callable[[Sequence[Value], Context], Value], doc: str = ""):
        self.name = name
        self.signature = signature
        self.func = func
        self.doc = doc

    def evaluate(self, args: Sequence[Value], ctx: Context) -> Value:
        return self.func(args, ctx)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<BuiltinFunction {self.name}>"


class FunctionRegistry:
    """Maps function names to :class:`Function` implementations."""

    def __init__(self, builtins: bool = True) -> None:
        self._functions: Dict[str, Function] = {}
        self._frozen = False
        if builtins:
            for name, function in _BUILTINS.items():
                self._functions[name] = function

    def register(self, name: str, function: Function, *, replace: bool = False) -> None:
        if self._frozen:
            raise ValueError("the default function registry is read-only; create a FunctionRegistry instead")
        if not isinstance(name, str) or not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name):
            raise ValueError(f"invalid function name {name!r}")
        if not isinstance(function, Function):
            raise TypeError(f"{name}: expected a Function, got {type(function).__name__}")
        if not isinstance(getattr(function, "signature", None), Signature):
            raise TypeError(f"{name}: function has no Signature")
        if name in self._functions and not replace:
            raise ValueError(f"function {name!r} is already registered")
        self._functions[name] = function
        logger.debug("registered function %s %r", name, function.signature)

    def register_function(
        self,
        name: str,
        signature: Signature,
        func: Optional[Callable[[Sequence[Value], Context], object]] = None,
        *,
        replace: bool = False,
    ):
        """Register a host callable; usable directly or as a decorator."""

        def decorator(target: Callable[[Sequence[Value], Context], object]):
            self.register(name, CustomFunction(signature, target), replace=replace)
            return target

        if func is not None:
            return decorator(func)
        return decorator

    def get(self, name: str) -> Optional[Function]:
        return self._functions.get(name)

    def names(self) -> List[str]:
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def call(self, name: str, args: Sequence[Value], ctx: Context) -> Value:
        function = self._functions.get(name)
        if function is None:
            raise UnknownFunctionError(name, ctx.offset)
        function.signature.validate(name, args, ctx.offset)
        return function.evaluate(args, ctx)

    def freeze(self) -> "FunctionRegistry":
        self._frozen = True
        return self


# ------------------------------- helpers -------------------------------- #
def _numbers(value: Value) -> List[float]:
    return [item.payload for item in value.payload]


def _expref_keys(
    name: str,
    elements: Iterable[Value],
    expref: Value,
    ctx: Context,
) -> List[Tuple[object, Value]]:
    """Evaluate ``expref`` for each element; keys must all be numbers or all strings."""
    # key expressions may call functions, which move ctx.offset
    offset = ctx.offset
    node = expref.payload.node
    keyed: List[Tuple[object, Value]] = []
    key_type: Optional[ValueType] = None
    for element in elements:
        key = interpret(node, element, ctx)
        if key.type not in (ValueType.NUMBER, ValueType.STRING):
            raise InvalidTypeForSortError(name, key.type_name, offset)
        if key_type is None:
            key_type = key.type
        elif key.type is not key_type:
            raise InvalidTypeForSortError(name, f"{key_type.value} and {key.type_name}", offset)
        keyed.append((key.payload, element))
    return keyed


def _format_number(number: float) -> str:
    if number.is_integer():
        return str(int(number))
    return repr(number)


_JSON_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


# ------------------------------- built-ins ------------------------------- #
def _fn_abs(args: Sequence[Value], ctx: Context) -> Value:
    return Value.number(abs(args[0].payload))


def _fn_avg(args: Sequence[Value], ctx: Context) -> Value:
    numbers = _numbers(args[0])
    if not numbers:
        return NULL
    return Value.number(math.fsum(numbers) / len(numbers))


def _fn_ceil(args: Sequence[Value], ctx: Context) -> Value:
    return Value.number(math.ceil(args[0].payload))


def _fn_floor(args: Sequence[Value], ctx: Context) -> Value:
    return Value.number(math.floor(args[0].payload))


def _fn_contains(args: Sequence[Value], ctx: Context) -> Value:
    subject, search = args
    if subject.type is ValueType.STRING:
        return Value.boolean(search.type is ValueType.STRING and search.payload in subject.payload)
    return Value.boolean(any(item == search for item in subject.payload))


def _fn_ends_with(args: Sequence[Value], ctx: Context) -> Value:
    return Value.boolean(args[0].payload.endswith(args[1].payload))


def _fn_starts_with(args: Sequence[Value], ctx: Context) -> Value:
    return Value.boolean(args[0].payload.startswith(args[1].payload))


def _fn_join(args: Sequence[Value], ctx: Context) -> Value:
    glue, items = args
    return Value.string(glue.payload.join(item.payload for item in items.payload))


def _fn_keys(args: Sequence[Value], ctx: Context) -> Value:
    return Value.array(Value.string(key) for key in args[0].payload)


def _fn_values(args: Sequence[Value], ctx: Context) -> Value:
    return Value.array(args[0].payload.values())


def _fn_length(args: Sequence[Value], ctx: Context) -> Value:
    return Value.number(len(args[0].payload))


def _fn_map(args: Sequence[Value], ctx: Context) -> Value:
    expref, items = args
    node = expref.payload.node
    return Value.array(interpret(node, item, ctx) for item in items.payload)


def _fn_max(args: Sequence[Value], ctx: Context) -> Value:
    items = args[0].payload
    if not items:
        return NULL
    return max(items, key=lambda item: item.payload)


def _fn_min(args: Sequence[Value], ctx: Context) -> Value:
    items = args[0].payload
    if not items:
        return NULL
    return min(items, key=lambda item: item.payload)


def _fn_max_by(args: Sequence[Value], ctx: Context) -> Value:
    keyed = _expref_keys("max_by", args[0].payload, args[1], ctx)
    if not keyed:
        return NULL
    return max(keyed, key=lambda pair: pair[0])[1]


def _fn_min_by(args: Sequence[Value], ctx: Context) -> Value:
    keyed = _expref_keys("min_by", args[0].payload, args[1], ctx)
    if not keyed:
        return NULL
    return min(keyed, key=lambda pair: pair[0])[1]


def _fn_merge(args: Sequence[Value], ctx: Context) -> Value:
    merged: Dict[str, Value] = {}
    for obj in args:
        merged.update(obj.payload)
    return Value.object(merged)


def _fn_not_null(args: Sequence[Value], ctx: Context) -> Value:
    for arg in args:
        if arg.type is not ValueType.NULL:
            return arg
    return NULL


def _fn_reverse(args: Sequence[Value], ctx: Context) -> Value:
    subject = args[0]
    if subject.type is ValueType.STRING:
        return Value.string(subject.payload[::-1])
    return Value.array(reversed(subject.payload))


def _fn_sort(args: Sequence[Value], ctx: Context) -> Value:
    return Value.array(sorted(args[0].payload, key=lambda item: item.payload))


def _fn_sort_by(args: Sequence[Value], ctx: Context) -> Value:
    keyed = _expref_keys("sort_by", args[0].payload, args[1], ctx)
    keyed.sort(key=lambda pair: pair[0])
    return Value.array(element for _, element in keyed)


def _fn_sum(args: Sequence[Value], ctx: Context) -> Value:
    return Value.number(math.fsum(_numbers(args[0])))


def _fn_to_array(args: Sequence[Value], ctx: Context) -> Value:
    subject = args[0]
    if subject.type is ValueType.ARRAY:
        return subject
    return Value.array([subject])


def _fn_to_string(args: Sequence[Value], ctx: Context) -> Value:
    subject = args[0]
    if subject.type is ValueType.STRING:
        return subject
    if subject.type is ValueType.NUMBER:
        return Value.string(_format_number(subject.payload))
    try:
        return Value.string(subject.to_json())
    except TypeError:
        raise InvalidTypeError("to_string", 0, "JSON value", subject.type_name, ctx.offset) from None


def _fn_to_number(args: Sequence[Value], ctx: Context) -> Value:
    subject = args[0]
    if subject.type is ValueType.NUMBER:
        return subject
    if subject.type is ValueType.STRING and _JSON_NUMBER.fullmatch(subject.payload):
        number = float(subject.payload)
        if math.isfinite(number):
            return Value.number(number)
    return NULL


def _fn_type(args: Sequence[Value], ctx: Context) -> Value:
    return Value.string(args[0].type_name)


_T = ArgumentType
_NUMBERS_OR_STRINGS = Union(_T.ARRAY_NUMBER, _T.ARRAY_STRING)

_BUILTIN_TABLE = [
    ("abs", Signature([_T.NUMBER], output=_T.NUMBER), _fn_abs, "Absolute value of a number."),
    ("avg", Signature([_T.ARRAY_NUMBER], output=_T.NUMBER), _fn_avg, "Average of an array of numbers."),
    ("ceil", Signature([_T.NUMBER], output=_T.NUMBER), _fn_ceil, "Round a number up."),
    (
        "contains",
        Signature([Union(_T.ARRAY, _T.STRING), _T.ANY], output=_T.BOOLEAN),
        _fn_contains,
        "Whether an array holds a value or a string holds a substring.",
    ),
    ("ends_with", Signature([_T.STRING, _T.STRING], output=_T.BOOLEAN), _fn_ends_with, "String suffix test."),
    ("floor", Signature([_T.NUMBER], output=_T.NUMBER), _fn_floor, "Round a number down."),
    ("join", Signature([_T.STRING, _T.ARRAY_STRING], output=_T.STRING), _fn_join, "Join strings with a glue string."),
    ("keys", Signature([_T.OBJECT], output=_T.ARRAY), _fn_keys, "Keys of an object."),
    (
        "length",
        Signature([Union(_T.STRING, _T.ARRAY, _T.OBJECT)], output=_T.NUMBER),
        _fn_length,
        "Length of a string, array or object.",
    ),
    ("map", Signature([_T.EXPREF, _T.ARRAY], output=_T.ARRAY), _fn_map, "Apply an expression to every element."),
    ("max", Signature([_NUMBERS_OR_STRINGS], output=_T.ANY), _fn_max, "Largest number or string."),
    ("max_by", Signature([_T.ARRAY, _T.EXPREF], output=_T.ANY), _fn_max_by, "Element with the largest key."),
    ("merge", Signature([_T.OBJECT], variadic=_T.OBJECT, output=_T.OBJECT), _fn_merge, "Merge objects left to right."),
    ("min", Signature([_NUMBERS_OR_STRINGS], output=_T.ANY), _fn_min, "Smallest number or string."),
    ("min_by", Signature([_T.ARRAY, _T.EXPREF], output=_T.ANY), _fn_min_by, "Element with the smallest key."),
    ("not_null", Signature([_T.ANY], variadic=_T.ANY, output=_T.ANY), _fn_not_null, "First argument that is not null."),
    (
        "reverse",
        Signature([Union(_T.ARRAY, _T.STRING)], output=Union(_T.ARRAY, _T.STRING)),
        _fn_reverse,
        "Reverse an array or string.",
    ),
    ("sort", Signature([_NUMBERS_OR_STRINGS], output=_T.ARRAY), _fn_sort, "Sort numbers or strings."),
    ("sort_by", Signature([_T.ARRAY, _T.EXPREF], output=_T.ARRAY), _fn_sort_by, "Stable sort by an expression key."),
    ("starts_with", Signature([_T.STRING, _T.STRING], output=_T.BOOLEAN), _fn_starts_with, "String prefix test."),
    ("sum", Signature([_T.ARRAY_NUMBER], output=_T.NUMBER), _fn_sum, "Sum of an array of numbers."),
    ("to_array", Signature([_T.ANY], output=_T.ARRAY), _fn_to_array, "Wrap non-arrays in an array."),
    ("to_number", Signature([_T.ANY], output=_T.NUMBER), _fn_to_number, "Convert to a number or null."),
    ("to_string", Signature([_T.ANY], output=_T.STRING), _fn_to_string, "Convert to a string."),
    ("type", Signature([_T.ANY], output=_T.STRING), _fn_type, "Name of the value's type."),
    ("values", Signature([_T.OBJECT], output=_T.ARRAY), _fn_values, "Values of an object."),
]

_BUILTINS: Dict[str, Function] = {
    name: BuiltinFunction(name, signature, func, doc) for name, signature, func, doc in _BUILTIN_TABLE
}

_DEFAULT_REGISTRY = FunctionRegistry().freeze()


def default_registry() -> FunctionRegistry:
    """The shared, read-only registry of built-in functions."""
    return _DEFAULT_REGISTRY


__all__ = [
    "ArgumentType",
    "Union",
    "Signature",
    "Function",
    "CustomFunction",
    "BuiltinFunction",
    "FunctionRegistry",
    "default_registry",
]
