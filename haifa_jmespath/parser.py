from __future__ import annotations

from typing import List, Optional

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
    KeyValuePair,
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
from .errors import ParseError, ParseErrorKind
from .lexer import Token, tokenize
from .values import Value

BINDING_POWER = {
    "EOF": 0,
    "IDENTIFIER": 0,
    "QUOTED_IDENTIFIER": 0,
    "RAW_STRING": 0,
    "LITERAL": 0,
    "NUMBER": 0,
    "RBRACKET": 0,
    "RPAREN": 0,
    "RBRACE": 0,
    "COMMA": 0,
    "COLON": 0,
    "AT": 0,
    "AMPERSAND": 0,
    "PIPE": 1,
    "OR": 2,
    "AND": 3,
    "EQ": 5,
    "NE": 5,
    "LT": 5,
    "LTE": 5,
    "GT": 5,
    "GTE": 5,
    "FLATTEN": 9,
    "STAR": 20,
    "FILTER": 21,
    "DOT": 40,
    "NOT": 45,
    "LBRACE": 50,
    "LBRACKET": 55,
    "LPAREN": 60,
}

# Operators binding at least this tightly continue a projection's right side.
PROJECTION_STOP = 10

_COMPARATORS = {
    "EQ": "==",
    "NE": "!=",
    "LT": "<",
    "LTE": "<=",
    "GT": ">",
    "GTE": ">=",
}

_CLOSERS = {"RBRACKET": "]", "RPAREN": ")", "RBRACE": "}"}


def _describe(token: Token) -> str:
    if token.type == "EOF":
        return "end of expression"
    if token.type in ("IDENTIFIER", "QUOTED_IDENTIFIER"):
        return f"identifier {token.value!r}"
    if token.type == "LITERAL":
        return "literal"
    return f"{token.type} {token.value!r}"


class Parser:
    def __init__(self, tokens: List[Token], source: Optional[str] = None):
        self.tokens = tokens
        self.index = 0
        self.source = source

    @classmethod
    def parse_source(cls, source: str) -> Node:
        try:
            parser = cls(tokenize(source), source)
        except RecursionError:
            raise ParseError(ParseErrorKind.TOO_DEEP, 0, "in expression", "", source) from None
        try:
            return parser.parse()
        except RecursionError:
            token = parser._current()
            raise ParseError(ParseErrorKind.TOO_DEEP, token.position, "at " + _describe(token), "", source) from None

    def parse(self) -> Node:
        node = self._expression(0)
        token = self._current()
        if token.type != "EOF":
            if token.type in _CLOSERS:
                raise self._error(
                    ParseErrorKind.UNMATCHED_DELIMITER,
                    token,
                    f"no opening delimiter for {_CLOSERS[token.type]!r}",
                )
            raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, token, "expected end of expression")
        return node

    # Parsing helpers -------------------------------------------------
    def _current(self) -> Token:
        return self.tokens[self.index]

    def _peek(self, offset: int = 1) -> Token:
        idx = self.index + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[idx]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.type != "EOF":
            self.index += 1
        return token

    def _match(self, *types: str) -> Optional[Token]:
        if self._current().type in types:
            return self._advance()
        return None

    def _expect(self, type_: str, context: str = "") -> Token:
        token = self._current()
        if token.type != type_:
            if type_ in _CLOSERS and token.type == "EOF":
                raise self._error(
                    ParseErrorKind.UNMATCHED_DELIMITER,
                    token,
                    context or f"expected {_CLOSERS[type_]!r}",
                )
            raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, token, context or f"expected {type_}")
        return self._advance()

    def _error(self, kind: ParseErrorKind, token: Token, context: str = "") -> ParseError:
        if token.type == "EOF" and kind is ParseErrorKind.UNEXPECTED_TOKEN:
            kind = ParseErrorKind.UNEXPECTED_EOF
        return ParseError(kind, token.position, _describe(token), context, self.source)

    # Pratt loop ------------------------------------------------------
    def _expression(self, binding_power: int) -> Node:
        token = self._advance()
        nud = getattr(self, f"_nud_{token.type.lower()}", None)
        if nud is None:
            raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, token, "expected an expression")
        left = nud(token)
        while binding_power < BINDING_POWER[self._current().type]:
            token = self._advance()
            led = getattr(self, f"_led_{token.type.lower()}", None)
            if led is None:
                raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, token)
            left = led(left, token)
        return left

    # Null denotations ------------------------------------------------
    def _nud_identifier(self, token: Token) -> Node:
        return Field(token.value, token.position)

    def _nud_quoted_identifier(self, token: Token) -> Node:
        if self._current().type == "LPAREN":
            raise self._error(
                ParseErrorKind.UNEXPECTED_TOKEN,
                self._current(),
                "quoted identifiers cannot be used as function names",
            )
        return Field(token.value, token.position)

    def _nud_raw_string(self, token: Token) -> Node:
        return Literal(Value.string(token.value), token.position)

    def _nud_literal(self, token: Token) -> Node:
        return Literal(token.value, token.position)

    def _nud_at(self, token: Token) -> Node:
        return CurrentNode(token.position)

    def _nud_star(self, token: Token) -> Node:
        if self._current().type == "RBRACKET":
            right: Node = Identity(token.position)
        else:
            right = self._projection_rhs(BINDING_POWER["STAR"])
        return ObjectProjection(Identity(token.position), right, token.position)

    def _nud_filter(self, token: Token) -> Node:
        return self._led_filter(Identity(token.position), token)

    def _nud_flatten(self, token: Token) -> Node:
        left = Flatten(Identity(token.position), token.position)
        right = self._projection_rhs(BINDING_POWER["FLATTEN"])
        return ListProjection(left, right, token.position)

    def _nud_not(self, token: Token) -> Node:
        return Not(self._expression(BINDING_POWER["NOT"]), token.position)

    def _nud_lparen(self, token: Token) -> Node:
        node = self._expression(0)
        self._expect("RPAREN", "expected ')' to close '('")
        return node

    def _nud_lbrace(self, token: Token) -> Node:
        return self._multi_select_hash(token)

    def _nud_ampersand(self, token: Token) -> Node:
        return ExpressionRef(self._expression(BINDING_POWER["AMPERSAND"]), token.position)

    def _nud_lbracket(self, token: Token) -> Node:
        current = self._current()
        if current.type in ("NUMBER", "COLON"):
            right = self._index_expression(token)
            return self._project_if_slice(Identity(token.position), right, token)
        if current.type == "STAR" and self._peek().type == "RBRACKET":
            self._advance()
            self._advance()
            right = self._projection_rhs(BINDING_POWER["STAR"])
            return ListProjection(Identity(token.position), right, token.position)
        return self._multi_select_list(token)

    # Left denotations ------------------------------------------------
    def _led_dot(self, left: Node, token: Token) -> Node:
        if self._current().type == "STAR":
            self._advance()
            right = self._projection_rhs(BINDING_POWER["DOT"])
            return ObjectProjection(left, right, token.position)
        right = self._dot_rhs(BINDING_POWER["DOT"])
        return Subexpr(left, right, token.position)

    def _led_lbracket(self, left: Node, token: Token) -> Node:
        current = self._current()
        if current.type in ("NUMBER", "COLON"):
            right = self._index_expression(token)
            return self._project_if_slice(left, right, token)
        self._expect("STAR", "expected a number, ':' or '*' after '['")
        self._expect("RBRACKET", "expected ']' to close '[*'")
        right = self._projection_rhs(BINDING_POWER["STAR"])
        return ListProjection(left, right, token.position)

    def _led_filter(self, left: Node, token: Token) -> Node:
        predicate = self._expression(0)
        self._expect("RBRACKET", "expected ']' to close '[?'")
        if self._current().type == "FLATTEN":
            right: Node = Identity(token.position)
        else:
            right = self._projection_rhs(BINDING_POWER["FILTER"])
        return FilterProjection(left, right, predicate, token.position)

    def _led_flatten(self, left: Node, token: Token) -> Node:
        right = self._projection_rhs(BINDING_POWER["FLATTEN"])
        return ListProjection(Flatten(left, token.position), right, token.position)

    def _led_pipe(self, left: Node, token: Token) -> Node:
        return Pipe(left, self._expression(BINDING_POWER["PIPE"]), token.position)

    def _led_or(self, left: Node, token: Token) -> Node:
        return Or(left, self._expression(BINDING_POWER["OR"]), token.position)

    def _led_and(self, left: Node, token: Token) -> Node:
        return And(left, self._expression(BINDING_POWER["AND"]), token.position)

    def _led_comparator(self, left: Node, token: Token) -> Node:
        right = self._expression(BINDING_POWER[token.type])
        following = self._current()
        if following.type in _COMPARATORS:
            raise self._error(
                ParseErrorKind.UNEXPECTED_TOKEN,
                following,
                "comparisons cannot be chained, use parentheses",
            )
        return Comparison(_COMPARATORS[token.type], left, right, token.position)

    _led_eq = _led_ne = _led_lt = _led_lte = _led_gt = _led_gte = _led_comparator

    def _led_lparen(self, left: Node, token: Token) -> Node:
        if not isinstance(left, Field):
            raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, token, "invalid function name")
        args: List[Node] = []
        while self._current().type != "RPAREN":
            if self._current().type == "EOF":
                raise self._error(
                    ParseErrorKind.UNMATCHED_DELIMITER,
                    self._current(),
                    f"expected ')' to close call to {left.name}",
                )
            args.append(self._expression(0))
            if self._current().type == "COMMA":
                self._advance()
                if self._current().type == "RPAREN":
                    raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, self._current(), "expected an argument")
            elif self._current().type != "RPAREN":
                raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, self._current(), "expected ',' or ')'")
        self._advance()
        return FunctionCall(left.name, tuple(args), left.offset)

    # Sub-productions -------------------------------------------------
    def _projection_rhs(self, binding_power: int) -> Node:
        current = self._current()
        if BINDING_POWER[current.type] < PROJECTION_STOP:
            return Identity(current.position)
        if current.type in ("LBRACKET", "FILTER"):
            return self._expression(binding_power)
        if current.type == "DOT":
            self._advance()
            return self._dot_rhs(binding_power)
        raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, current, "expected '.', '[' or '[?'")

    def _dot_rhs(self, binding_power: int) -> Node:
        current = self._current()
        if current.type in ("IDENTIFIER", "QUOTED_IDENTIFIER", "STAR"):
            return self._expression(binding_power)
        if current.type == "LBRACKET":
            return self._multi_select_list(self._advance())
        if current.type == "LBRACE":
            return self._multi_select_hash(self._advance())
        raise self._error(
            ParseErrorKind.UNEXPECTED_TOKEN,
            current,
            "expected an identifier, '*', '[' or '{' after '.'",
        )

    def _index_expression(self, opener: Token) -> Node:
        if self._current().type == "COLON" or self._peek().type == "COLON":
            return self._slice_expression(opener)
        number = self._expect("NUMBER")
        self._expect("RBRACKET", "expected ']' to close index")
        return Index(number.value, opener.position)

    def _slice_expression(self, opener: Token) -> Node:
        parts: List[Optional[int]] = [None, None, None]
        position = 0
        while self._current().type != "RBRACKET":
            current = self._current()
            if current.type == "COLON":
                position += 1
                if position == 3:
                    raise self._error(ParseErrorKind.MALFORMED_SLICE, current, "too many colons in slice")
                self._advance()
            elif current.type == "NUMBER":
                if parts[position] is not None:
                    raise self._error(ParseErrorKind.MALFORMED_SLICE, current, "expected ':' or ']'")
                parts[position] = current.value
                self._advance()
            elif current.type == "EOF":
                raise self._error(ParseErrorKind.UNMATCHED_DELIMITER, current, "expected ']' to close slice")
            else:
                raise self._error(ParseErrorKind.MALFORMED_SLICE, current, "expected a number, ':' or ']'")
        self._advance()
        return Slice(parts[0], parts[1], parts[2], opener.position)

    def _project_if_slice(self, left: Node, right: Node, token: Token) -> Node:
        if isinstance(left, Identity):
            indexed = right
        else:
            indexed = Subexpr(left, right, token.position)
        if isinstance(right, Slice):
            rhs = self._projection_rhs(BINDING_POWER["STAR"])
            return ListProjection(indexed, rhs, token.position)
        return indexed

    def _multi_select_list(self, opener: Token) -> Node:
        elements: List[Node] = []
        while True:
            if self._current().type == "RBRACKET":
                raise self._error(ParseErrorKind.UNEXPECTED_TOKEN, self._current(), "expected an expression")
            elements.append(self._expression(0))
            if self._current().type == "RBRACKET":
                break
            if self._current().type == "EOF":
                raise self._error(ParseErrorKind.UNMATCHED_DELIMITER, self._current(), "expected ']'")
            self._expect("COMMA", "expected ',' or ']' in multi-select list")
        self._expect("RBRACKET")
        return MultiSelectList(tuple(elements), opener.position)

    def _multi_select_hash(self, opener: Token) -> Node:
        pairs: List[KeyValuePair] = []
        while True:
            key = self._current()
            if key.type not in ("IDENTIFIER", "QUOTED_IDENTIFIER"):
                if key.type == "EOF":
                    raise self._error(ParseErrorKind.UNMATCHED_DELIMITER, key, "expected '}'")
                raise self._error(ParseErrorKind.INVALID_KEY, key, "keys must be identifiers or quoted identifiers")
            self._advance()
            self._expect("COLON", "expected ':' after multi-select hash key")
            pairs.append(KeyValuePair(key.value, self._expression(0)))
            if self._match("RBRACE"):
                break
            if self._current().type == "EOF":
                raise self._error(ParseErrorKind.UNMATCHED_DELIMITER, self._current(), "expected '}'")
            self._expect("COMMA", "expected ',' or '}' in multi-select hash")
        return MultiSelectHash(tuple(pairs), opener.position)


def parse(source: str) -> Node:
    return Parser.parse_source(source)


__all__ = ["parse", "Parser", "BINDING_POWER", "PROJECTION_STOP"]
