from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List

from .errors import LexError, LexErrorKind
from .values import Value

_IDENT_START = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_IDENT_CHARS = _IDENT_START | set("0123456789")
_DIGITS = set("0123456789")
_WHITESPACE = set(" \t\r\n")

_SIMPLE_TOKENS = {
    ".": "DOT",
    "*": "STAR",
    "]": "RBRACKET",
    "{": "LBRACE",
    "}": "RBRACE",
    "(": "LPAREN",
    ")": "RPAREN",
    ",": "COMMA",
    ":": "COLON",
    "@": "AT",
}

# (first char, second char) -> two char token, falling back to the single char token
_DOUBLE_TOKENS = {
    "|": ("|", "OR", "PIPE"),
    "&": ("&", "AND", "AMPERSAND"),
    "!": ("=", "NE", "NOT"),
    "<": ("=", "LTE", "LT"),
    ">": ("=", "GTE", "GT"),
}

_JSON_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}


@dataclass(frozen=True)
class Token:
    type: str
    value: Any
    position: int


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self.pos = 0

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            self._skip_whitespace()
            if self.pos >= self.length:
                break
            tokens.append(self._next_token())
        tokens.append(Token("EOF", None, self.length))
        return tokens

    # ------------------------------- internals ---------------------------- #
    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= self.length:
            return ""
        return self.source[idx]

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.source[self.pos] in _WHITESPACE:
            self.pos += 1

    def _error(self, kind: LexErrorKind, message: str, offset: int) -> LexError:
        return LexError(kind, message, offset, self.source)

    def _next_token(self) -> Token:
        start = self.pos
        ch = self.source[start]

        if ch in _IDENT_START:
            return self._identifier(start)
        if ch in _DIGITS or ch == "-":
            return self._number(start)
        if ch == '"':
            return self._quoted_identifier(start)
        if ch == "'":
            return self._raw_string(start)
        if ch == "`":
            return self._json_literal(start)
        if ch == "[":
            following = self._peek(1)
            if following == "]":
                self.pos += 2
                return Token("FLATTEN", "[]", start)
            if following == "?":
                self.pos += 2
                return Token("FILTER", "[?", start)
            self.pos += 1
            return Token("LBRACKET", "[", start)
        if ch in _SIMPLE_TOKENS:
            self.pos += 1
            return Token(_SIMPLE_TOKENS[ch], ch, start)
        if ch in _DOUBLE_TOKENS:
            second, double_type, single_type = _DOUBLE_TOKENS[ch]
            if self._peek(1) == second:
                self.pos += 2
                return Token(double_type, ch + second, start)
            self.pos += 1
            return Token(single_type, ch, start)
        if ch == "=":
            if self._peek(1) == "=":
                self.pos += 2
                return Token("EQ", "==", start)
            raise self._error(LexErrorKind.INVALID_CHARACTER, "did you mean '=='?", start)

        raise self._error(LexErrorKind.INVALID_CHARACTER, repr(ch), start)

    def _identifier(self, start: int) -> Token:
        end = start + 1
        while end < self.length and self.source[end] in _IDENT_CHARS:
            end += 1
        self.pos = end
        return Token("IDENTIFIER", self.source[start:end], start)

    def _number(self, start: int) -> Token:
        end = start + 1 if self.source[start] == "-" else start
        digits_start = end
        while end < self.length and self.source[end] in _DIGITS:
            end += 1
        if end == digits_start:
            raise self._error(LexErrorKind.INVALID_CHARACTER, "'-' must be followed by digits", start)
        self.pos = end
        return Token("NUMBER", int(self.source[start:end]), start)

    def _delimited(self, start: int, delimiter: str) -> str:
        """Consume up to the closing ``delimiter``, returning the raw inner text.

        A backslash always skips the following character, so an escaped
        delimiter never closes the token.
        """
        pos = start + 1
        while pos < self.length:
            ch = self.source[pos]
            if ch == "\\":
                pos += 2
                continue
            if ch == delimiter:
                self.pos = pos + 1
                return self.source[start + 1:pos]
            pos += 1
        raise self._error(
            LexErrorKind.UNTERMINATED,
            f"missing closing {delimiter}",
            start,
        )

    def _quoted_identifier(self, start: int) -> Token:
        raw = self._delimited(start, '"')
        return Token("QUOTED_IDENTIFIER", self._decode_json_string(raw, start + 1), start)

    def _decode_json_string(self, raw: str, base: int) -> str:
        chars: List[str] = []
        i = 0
        length = len(raw)
        while i < length:
            ch = raw[i]
            if ch != "\\":
                if ch < " ":
                    raise self._error(
                        LexErrorKind.INVALID_CHARACTER,
                        "control characters must be escaped",
                        base + i,
                    )
                chars.append(ch)
                i += 1
                continue
            code = raw[i + 1] if i + 1 < length else ""
            if code in _JSON_ESCAPES:
                chars.append(_JSON_ESCAPES[code])
                i += 2
                continue
            if code == "u":
                codepoint = self._hex4(raw, i + 2, base + i)
                i += 6
                if 0xD800 <= codepoint < 0xDC00 and raw[i:i + 2] == "\\u":
                    low = self._hex4(raw, i + 2, base + i)
                    if 0xDC00 <= low < 0xE000:
                        codepoint = 0x10000 + ((codepoint - 0xD800) << 10) + (low - 0xDC00)
                        i += 6
                chars.append(chr(codepoint))
                continue
            raise self._error(LexErrorKind.INVALID_ESCAPE, f"\\{code}", base + i)
        return "".join(chars)

    def _hex4(self, raw: str, index: int, offset: int) -> int:
        digits = raw[index:index + 4]
        if len(digits) != 4 or any(c not in "0123456789abcdefABCDEF" for c in digits):
            raise self._error(LexErrorKind.INVALID_ESCAPE, f"\\u{digits}", offset)
        return int(digits, 16)

    def _raw_string(self, start: int) -> Token:
        raw = self._delimited(start, "'")
        chars: List[str] = []
        i = 0
        while i < len(raw):
            ch = raw[i]
            if ch == "\\" and i + 1 < len(raw) and raw[i + 1] in "'\\":
                chars.append(raw[i + 1])
                i += 2
                continue
            chars.append(ch)
            i += 1
        return Token("RAW_STRING", "".join(chars), start)

    def _json_literal(self, start: int) -> Token:
        raw = self._delimited(start, "`").replace("\\`", "`")
        try:
            value = Value.from_json(raw.strip())
        except (ValueError, TypeError) as exc:
            raise self._error(LexErrorKind.INVALID_LITERAL, str(exc), start) from exc
        except RecursionError:
            raise self._error(LexErrorKind.INVALID_LITERAL, "literal is nested too deeply", start) from None
        return Token("LITERAL", value, start)


def tokenize(source: str) -> List[Token]:
    return Lexer(source).tokenize()


__all__ = ["Token", "Lexer", "tokenize"]
