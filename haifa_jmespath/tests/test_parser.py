import unittest

from haifa_jmespath.ast import (
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
    Not,
    ObjectProjection,
    Or,
    Pipe,
    Slice,
    Subexpr,
    format_tree,
    walk,
)
from haifa_jmespath.errors import ParseError, ParseErrorKind
from haifa_jmespath.parser import parse
from haifa_jmespath.values import Value


class TestParser(unittest.TestCase):
    def test_field_and_subexpression(self):
        self.assertEqual(parse("foo"), Field("foo"))
        self.assertEqual(parse("foo.bar"), Subexpr(Field("foo"), Field("bar")))
        self.assertEqual(parse('"foo bar"'), Field("foo bar"))

    def test_index_expressions(self):
        self.assertEqual(parse("[0]"), Index(0))
        self.assertEqual(parse("foo[-1]"), Subexpr(Field("foo"), Index(-1)))

    def test_slices_are_projections(self):
        self.assertEqual(
            parse("foo[1:2]"),
            ListProjection(Subexpr(Field("foo"), Slice(1, 2, None)), Identity()),
        )
        self.assertEqual(parse("[::-1]"), ListProjection(Slice(None, None, -1), Identity()))
        self.assertEqual(
            parse("[:2].a"),
            ListProjection(Slice(None, 2, None), Field("a")),
        )

    def test_wildcards(self):
        self.assertEqual(parse("foo[*]"), ListProjection(Field("foo"), Identity()))
        self.assertEqual(parse("foo[*].bar"), ListProjection(Field("foo"), Field("bar")))
        self.assertEqual(parse("foo.*.bar"), ObjectProjection(Field("foo"), Field("bar")))
        self.assertEqual(parse("*"), ObjectProjection(Identity(), Identity()))
        self.assertEqual(parse("[*]"), ListProjection(Identity(), Identity()))

    def test_nested_projections(self):
        self.assertEqual(
            parse("foo[*].bar[*].baz"),
            ListProjection(Field("foo"), ListProjection(Field("bar"), Field("baz"))),
        )

    def test_flatten(self):
        self.assertEqual(parse("foo[]"), ListProjection(Flatten(Field("foo")), Identity()))
        self.assertEqual(parse("[]"), ListProjection(Flatten(Identity()), Identity()))
        self.assertEqual(
            parse("foo[].bar"),
            ListProjection(Flatten(Field("foo")), Field("bar")),
        )

    def test_filter(self):
        predicate = Comparison("==", Field("a"), Literal(Value.number(1)))
        self.assertEqual(
            parse("foo[?a == `1`].b"),
            FilterProjection(Field("foo"), Field("b"), predicate),
        )
        self.assertEqual(
            parse("[?a == `1`]"),
            FilterProjection(Identity(), Identity(), predicate),
        )

    def test_pipe_ends_projection(self):
        self.assertEqual(
            parse("foo[*].bar | baz"),
            Pipe(ListProjection(Field("foo"), Field("bar")), Field("baz")),
        )

    def test_boolean_precedence(self):
        self.assertEqual(parse("a || b && c"), Or(Field("a"), And(Field("b"), Field("c"))))
        self.assertEqual(parse("(a || b) && c"), And(Or(Field("a"), Field("b")), Field("c")))
        self.assertEqual(parse("!a"), Not(Field("a")))
        self.assertEqual(parse("!a && b"), And(Not(Field("a")), Field("b")))
        self.assertEqual(parse("!(a.b)"), Not(Subexpr(Field("a"), Field("b"))))
        self.assertEqual(
            parse("!a == b"),
            Comparison("==", Not(Field("a")), Field("b")),
        )

    def test_multi_select(self):
        self.assertEqual(parse("[a, b]"), MultiSelectList((Field("a"), Field("b"))))
        self.assertEqual(
            parse('{x: a, "y z": b}'),
            MultiSelectHash((KeyValuePair("x", Field("a")), KeyValuePair("y z", Field("b")))),
        )
        self.assertEqual(
            parse("foo.[a, b]"),
            Subexpr(Field("foo"), MultiSelectList((Field("a"), Field("b")))),
        )

    def test_functions_and_exprefs(self):
        self.assertEqual(
            parse("sort_by(@, &a)"),
            FunctionCall("sort_by", (CurrentNode(), ExpressionRef(Field("a")))),
        )
        self.assertEqual(parse("length(@)"), FunctionCall("length", (CurrentNode(),)))
        self.assertEqual(parse("f()"), FunctionCall("f", ()))

    def test_literals(self):
        self.assertEqual(parse("'raw'"), Literal(Value.string("raw")))
        self.assertEqual(parse("`[1, true]`"), Literal(Value.from_python([1, True])))

    def test_offsets_recorded_but_ignored_by_equality(self):
        node = parse("foo | length(@)")
        self.assertEqual(node.offset, 4)
        self.assertEqual(node.right.offset, 6)
        self.assertEqual(node, Pipe(Field("foo", 99), FunctionCall("length", (CurrentNode(),))))

    def test_parse_is_deterministic(self):
        self.assertEqual(parse("a[?b > `2`].c | [0]"), parse("a[?b > `2`].c | [0]"))

    def test_walk_visits_every_node(self):
        names = [type(node).__name__ for node in walk(parse("a.b[0]"))]
        self.assertEqual(names, ["Subexpr", "Field", "Subexpr", "Field", "Index"])

    def test_format_tree(self):
        self.assertEqual(
            format_tree(parse("foo.bar")),
            "Subexpr\n  Field 'foo'\n  Field 'bar'",
        )


class TestParserErrors(unittest.TestCase):
    def assertParseError(self, source, kind):  # noqa: N802
        with self.assertRaises(ParseError) as ctx:
            parse(source)
        self.assertIs(ctx.exception.kind, kind)
        self.assertEqual(ctx.exception.expression, source)
        return ctx.exception

    def test_trailing_dot(self):
        error = self.assertParseError("foo.", ParseErrorKind.UNEXPECTED_EOF)
        self.assertEqual(error.offset, 4)

    def test_unmatched_delimiters(self):
        self.assertParseError("(foo", ParseErrorKind.UNMATCHED_DELIMITER)
        self.assertParseError("foo)", ParseErrorKind.UNMATCHED_DELIMITER)
        self.assertParseError("[a, b", ParseErrorKind.UNMATCHED_DELIMITER)
        self.assertParseError("{a: b", ParseErrorKind.UNMATCHED_DELIMITER)

    def test_incomplete_bracket(self):
        self.assertParseError("foo[", ParseErrorKind.UNEXPECTED_EOF)

    def test_malformed_slices(self):
        self.assertParseError("foo[1:2:3:4]", ParseErrorKind.MALFORMED_SLICE)
        self.assertParseError("foo[1:2 3]", ParseErrorKind.MALFORMED_SLICE)

    def test_invalid_hash_key(self):
        self.assertParseError("{1: a}", ParseErrorKind.INVALID_KEY)
        self.assertParseError("{'a': b}", ParseErrorKind.INVALID_KEY)

    def test_chained_comparisons_rejected(self):
        error = self.assertParseError("a < b < c", ParseErrorKind.UNEXPECTED_TOKEN)
        self.assertEqual(error.offset, 6)

    def test_bad_function_calls(self):
        self.assertParseError("f(a,)", ParseErrorKind.UNEXPECTED_TOKEN)
        self.assertParseError("f(a b)", ParseErrorKind.UNEXPECTED_TOKEN)
        self.assertParseError('"foo"(@)', ParseErrorKind.UNEXPECTED_TOKEN)
        self.assertParseError("foo[0](@)", ParseErrorKind.UNEXPECTED_TOKEN)

    def test_empty_multi_select_list(self):
        self.assertParseError("[ ]", ParseErrorKind.UNEXPECTED_TOKEN)

    def test_adjacent_expressions(self):
        self.assertParseError("a b", ParseErrorKind.UNEXPECTED_TOKEN)
        self.assertParseError("", ParseErrorKind.UNEXPECTED_EOF)

    def test_error_message_has_caret(self):
        error = self.assertParseError("foo.", ParseErrorKind.UNEXPECTED_EOF)
        self.assertTrue(str(error).startswith("Parse error at line 0, column 4:"))
        self.assertTrue(str(error).endswith("foo.\n    ^"))

    def test_deep_nesting_is_reported(self):
        source = "(" * 5000 + "a" + ")" * 5000
        self.assertParseError(source, ParseErrorKind.TOO_DEEP)


if __name__ == "__main__":
    unittest.main()
