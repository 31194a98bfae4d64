"""Runtime values flowing through the interpreter.

A :class:`Value` is an immutable tagged JSON value. Arrays hold a tuple of
values and objects a read-only mapping, so a value handed to a sub-expression
is shared, never copied. Numbers are always stored as floats.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional


class ValueType(Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    EXPREF = "expref"


@dataclass(frozen=True)
class ExpressionRef:
    """An unevaluated AST node plus the value current when ``&expr`` was seen."""

    node: Any
    context: "Value"


class Value:
    __slots__ = ("type", "payload")

    def __init__(self, type_: ValueType, payload: Any) -> None:
        object.__setattr__(self, "type", type_)
        object.__setattr__(self, "payload", payload)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Value is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Value is immutable")

    # Constructors ------------------------------------------------------
    @staticmethod
    def boolean(flag: bool) -> "Value":
        return TRUE if flag else FALSE

    @staticmethod
    def number(number: float) -> "Value":
        if isinstance(number, bool):
            raise TypeError("booleans are not numbers")
        try:
            number = float(number)
        except OverflowError:
            raise TypeError(f"{number!r} does not fit in a double") from None
        if not math.isfinite(number):
            raise TypeError(f"{number!r} is not a JSON number")
        return Value(ValueType.NUMBER, number)

    @staticmethod
    def string(text: str) -> "Value":
        return Value(ValueType.STRING, text)

    @staticmethod
    def array(items: Iterable["Value"]) -> "Value":
        return Value(ValueType.ARRAY, tuple(items))

    @staticmethod
    def object(entries: Mapping[str, "Value"]) -> "Value":
        return Value(ValueType.OBJECT, MappingProxyType(dict(entries)))

    @staticmethod
    def expref(node: Any, context: "Value") -> "Value":
        return Value(ValueType.EXPREF, ExpressionRef(node, context))

    @classmethod
    def from_python(cls, data: Any) -> "Value":
        """Convert JSON shaped Python data into a :class:`Value`."""
        if isinstance(data, Value):
            return data
        if data is None:
            return NULL
        if isinstance(data, bool):
            return cls.boolean(data)
        if isinstance(data, (int, float)):
            return cls.number(data)
        if isinstance(data, str):
            return cls.string(data)
        if isinstance(data, Mapping):
            entries = {}
            for key, item in data.items():
                if not isinstance(key, str):
                    raise TypeError(f"object keys must be strings, got {type(key).__name__}")
                entries[key] = cls.from_python(item)
            return Value(ValueType.OBJECT, MappingProxyType(entries))
        if isinstance(data, (list, tuple)):
            return Value(ValueType.ARRAY, tuple(cls.from_python(item) for item in data))
        if isinstance(data, ExpressionRef):
            return Value(ValueType.EXPREF, data)
        raise TypeError(f"cannot convert {type(data).__name__} to a JMESPath value")

    @classmethod
    def from_json(cls, text: str) -> "Value":
        return cls.from_python(json.loads(text, parse_constant=_reject_constant))

    # Conversion --------------------------------------------------------
    def to_python(self) -> Any:
        kind = self.type
        if kind is ValueType.NUMBER:
            return _python_number(self.payload)
        if kind is ValueType.ARRAY:
            return [item.to_python() for item in self.payload]
        if kind is ValueType.OBJECT:
            return {key: item.to_python() for key, item in self.payload.items()}
        return self.payload

    def to_json(self, indent: Optional[int] = None) -> str:
        if self.type is ValueType.EXPREF:
            raise TypeError("expression references cannot be serialized to JSON")
        separators = (",", ":") if indent is None else (",", ": ")
        return json.dumps(self.to_python(), indent=indent, separators=separators, ensure_ascii=False)

    # Inspection --------------------------------------------------------
    @property
    def type_name(self) -> str:
        return self.type.value

    def is_null(self) -> bool:
        return self.type is ValueType.NULL

    def is_number(self) -> bool:
        return self.type is ValueType.NUMBER

    def is_string(self) -> bool:
        return self.type is ValueType.STRING

    def is_array(self) -> bool:
        return self.type is ValueType.ARRAY

    def is_object(self) -> bool:
        return self.type is ValueType.OBJECT

    def is_expref(self) -> bool:
        return self.type is ValueType.EXPREF

    def is_truthy(self) -> bool:
        kind = self.type
        if kind is ValueType.NULL:
            return False
        if kind is ValueType.BOOLEAN:
            return self.payload
        if kind in (ValueType.STRING, ValueType.ARRAY, ValueType.OBJECT):
            return len(self.payload) > 0
        return True

    def is_whole_number(self) -> bool:
        return self.type is ValueType.NUMBER and self.payload.is_integer()

    def get_field(self, name: str) -> "Value":
        if self.type is ValueType.OBJECT:
            return self.payload.get(name, NULL)
        return NULL

    def get_index(self, index: int) -> "Value":
        if self.type is not ValueType.ARRAY:
            return NULL
        items = self.payload
        if index < 0:
            index += len(items)
        if 0 <= index < len(items):
            return items[index]
        return NULL

    def slice(self, start: Optional[int], stop: Optional[int], step: Optional[int]) -> "Value":
        if self.type is not ValueType.ARRAY:
            return NULL
        return Value(ValueType.ARRAY, self.payload[start:stop:step])

    # Equality ----------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self is other:
            return True
        if self.type is not other.type:
            return False
        if self.type is ValueType.OBJECT:
            mine, theirs = self.payload, other.payload
            if len(mine) != len(theirs):
                return False
            for key, item in mine.items():
                if key not in theirs or theirs[key] != item:
                    return False
            return True
        return self.payload == other.payload

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        if self.type in (ValueType.ARRAY, ValueType.OBJECT):
            return hash((self.type, len(self.payload)))
        return hash((self.type, self.payload))

    def __repr__(self) -> str:
        if self.type is ValueType.EXPREF:
            return f"Value(expref {self.payload.node!r})"
        return f"Value({self.to_json()})"


def _python_number(number: float) -> Any:
    if number.is_integer():
        return int(number)
    return number


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


NULL = Value(ValueType.NULL, None)
TRUE = Value(ValueType.BOOLEAN, True)
FALSE = Value(ValueType.BOOLEAN, False)
EMPTY_ARRAY = Value(ValueType.ARRAY, ())


__all__ = [
    "Value",
    "ValueType",
    "ExpressionRef",
    "NULL",
    "TRUE",
    "FALSE",
    "EMPTY_ARRAY",
]
