"""haifa_jmespath package exposes the JMESPath compile/search API."""
from .errors import (
    InvalidArityError,
    InvalidSliceError,
    InvalidTypeError,
    InvalidTypeForSortError,
    JMESPathError,
    JMESPathRuntimeError,
    LexError,
    ParseError,
    RecursionLimitExceededError,
    UnknownFunctionError,
)
from .functions import ArgumentType, CustomFunction, FunctionRegistry, Signature, Union, default_registry
from .interpreter import Context
from .lexer import tokenize
from .parser import parse
from .runtime import Expression, ExpressionBuilder, compile, search
from .values import Value, ValueType

__all__ = [
    "compile",
    "search",
    "parse",
    "tokenize",
    "Expression",
    "ExpressionBuilder",
    "Context",
    "Value",
    "ValueType",
    "ArgumentType",
    "Union",
    "Signature",
    "CustomFunction",
    "FunctionRegistry",
    "default_registry",
    "JMESPathError",
    "LexError",
    "ParseError",
    "JMESPathRuntimeError",
    "UnknownFunctionError",
    "InvalidArityError",
    "InvalidTypeError",
    "InvalidSliceError",
    "InvalidTypeForSortError",
    "RecursionLimitExceededError",
]
