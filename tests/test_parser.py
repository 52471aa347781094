"""
Tests for the Kaleidoscope parser.

Author: kaleidoscope contributors
"""

import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from kaleidoscope.lexer.errors import LexerError
from kaleidoscope.lexer.lexer import Lexer
from kaleidoscope.lexer.tokens import TokenType
from kaleidoscope.parser.parser import Parser
from kaleidoscope.parser.errors import ParseError
from kaleidoscope.parser.ast_nodes import (
    NumberLiteral, VariableRef, BinaryOp, Call, Prototype, Function
)


def N(value):
    return NumberLiteral(value)


def V(name):
    return VariableRef(name)


def expr(source, strict=True):
    return Parser.from_string(source, strict=strict).parse_expression()


class TestPrecedence(unittest.TestCase):
    """Binary operator precedence climbing."""

    def test_mixed_additive_and_multiplicative(self):
        self.assertEqual(
            expr("1+2*3-4"),
            BinaryOp("-", BinaryOp("+", N(1), BinaryOp("*", N(2), N(3))), N(4))
        )

    def test_comparison_binds_loosest(self):
        self.assertEqual(
            expr("1+2<3*4"),
            BinaryOp("<", BinaryOp("+", N(1), N(2)), BinaryOp("*", N(3), N(4)))
        )

    def test_tighter_operator_after_looser_one(self):
        self.assertEqual(
            expr("1<2+3*4"),
            BinaryOp("<", N(1), BinaryOp("+", N(2), BinaryOp("*", N(3), N(4))))
        )

    def test_multiplication_first(self):
        self.assertEqual(expr("1*2+3"), BinaryOp("+", BinaryOp("*", N(1), N(2)), N(3)))

    def test_equal_precedence_is_left_associative(self):
        self.assertEqual(expr("a-b-c"), BinaryOp("-", BinaryOp("-", V("a"), V("b")), V("c")))
        self.assertEqual(expr("a-b+c"), BinaryOp("+", BinaryOp("-", V("a"), V("b")), V("c")))
        self.assertEqual(expr("a*b*c"), BinaryOp("*", BinaryOp("*", V("a"), V("b")), V("c")))
        self.assertEqual(expr("a<b<c"), BinaryOp("<", BinaryOp("<", V("a"), V("b")), V("c")))

    def test_nested_climbing(self):
        expected = BinaryOp(
            "-",
            BinaryOp("+", V("a"), BinaryOp("*", BinaryOp("*", V("b"), V("c")), V("d"))),
            V("e"),
        )
        self.assertEqual(expr("a+b*c*d-e"), expected)

    def test_parentheses_override_precedence(self):
        self.assertEqual(expr("(1+2)*3"), BinaryOp("*", BinaryOp("+", N(1), N(2)), N(3)))
        self.assertEqual(expr("a-(b-c)"), BinaryOp("-", V("a"), BinaryOp("-", V("b"), V("c"))))

    def test_parentheses_leave_no_node(self):
        self.assertEqual(expr("((x))"), V("x"))

    def test_unknown_operator_ends_expression(self):
        parser = Parser.from_string("a / b")
        self.assertEqual(parser.parse_expression(), V("a"))
        self.assertTrue(parser.current_token.is_symbol("/"))

    def test_non_operator_ends_expression(self):
        parser = Parser.from_string("x y")
        self.assertEqual(parser.parse_expression(), V("x"))
        self.assertEqual(parser.current_token.value, "y")

    def test_whitespace_does_not_change_the_tree(self):
        self.assertEqual(expr("1+2"), expr("  1 +\n\t2  "))


class TestPrimaryExpressions(unittest.TestCase):
    """Numbers, variables, calls."""

    def test_number(self):
        node = expr("4.5")
        self.assertIsInstance(node, NumberLiteral)
        self.assertEqual(node.value, 4.5)

    def test_variable(self):
        self.assertEqual(expr("foo"), V("foo"))

    def test_call_with_arguments(self):
        self.assertEqual(
            expr("foo(1, 2+3)"),
            Call("foo", (N(1), BinaryOp("+", N(2), N(3))))
        )

    def test_call_without_arguments(self):
        self.assertEqual(expr("foo()"), Call("foo", ()))

    def test_nested_calls(self):
        self.assertEqual(
            expr("f(g(x), y)"),
            Call("f", (Call("g", (V("x"),)), V("y")))
        )

    def test_call_inside_binary_expression(self):
        self.assertEqual(expr("f(x)*2"), BinaryOp("*", Call("f", (V("x"),)), N(2)))

    def test_spans(self):
        function = Parser.from_string("def foo(x) x+1").parse_definition()
        self.assertEqual(function.span.start.column, 1)
        self.assertEqual(function.body.span.start.column, 12)
        self.assertEqual(function.body.span.end.column, 14)
        self.assertEqual(function.prototype.span.start.column, 5)


class TestDeclarations(unittest.TestCase):
    """Definitions, externs and top-level expressions."""

    def test_definition(self):
        function = Parser.from_string("def foo(x y) x+y").parse_definition()
        self.assertEqual(
            function,
            Function(Prototype("foo", ("x", "y")), BinaryOp("+", V("x"), V("y")))
        )
        self.assertEqual(function.name, "foo")
        self.assertFalse(function.is_anonymous)

    def test_definition_without_parameters(self):
        function = Parser.from_string("def one() 1").parse_definition()
        self.assertEqual(function.prototype, Prototype("one", ()))
        self.assertEqual(function.prototype.arity, 0)

    def test_extern(self):
        prototype = Parser.from_string("extern sin(x)").parse_extern()
        self.assertEqual(prototype, Prototype("sin", ("x",)))

    def test_top_level_expression_is_anonymous_function(self):
        function = Parser.from_string("42").parse_top_level_expr()
        self.assertEqual(function, Function(Prototype("", ()), N(42)))
        self.assertTrue(function.is_anonymous)
        self.assertEqual(function.prototype.params, ())

    def test_duplicate_parameter_names_are_accepted(self):
        prototype = Parser.from_string("extern f(a a)").parse_extern()
        self.assertEqual(prototype.params, ("a", "a"))


class TestErrors(unittest.TestCase):
    """Errors raised by the parser in strict mode."""

    def assertParseError(self, source, code, method="parse_expression"):
        parser = Parser.from_string(source)
        with self.assertRaises(ParseError) as ctx:
            getattr(parser, method)()
        self.assertEqual(ctx.exception.code, code)
        return ctx.exception

    def test_unknown_token_when_expecting_expression(self):
        error = self.assertParseError(")", "P005")
        self.assertTrue(error.token.is_symbol(")"))
        self.assertIn("when expecting an expression", str(error))

    def test_keyword_is_not_an_expression(self):
        error = self.assertParseError("def", "P005")
        self.assertEqual(error.token.type, TokenType.DEF)

    def test_empty_input_is_unexpected_end(self):
        self.assertParseError("", "P010")

    def test_missing_right_operand(self):
        self.assertParseError("1 +", "P010")

    def test_unclosed_parenthesis(self):
        self.assertParseError("(1+2", "P010")

    def test_wrong_token_instead_of_closing_parenthesis(self):
        error = self.assertParseError("(1+2 3", "P001")
        self.assertIn("Expected ')'", str(error))
        self.assertEqual(error.token.value, 3.0)

    def test_missing_argument_separator(self):
        error = self.assertParseError("foo(1 2)", "P001")
        self.assertIn("Expected ',' or ')'", str(error))

    def test_trailing_comma_in_call(self):
        self.assertParseError("foo(1,)", "P005")

    def test_missing_open_parenthesis_in_prototype(self):
        error = self.assertParseError("def foo x) x", "P001", "parse_definition")
        self.assertIn("Expected '('", str(error))
        self.assertEqual(error.token.value, "x")

    def test_comma_in_parameter_list(self):
        error = self.assertParseError("def foo(x, y) x", "P001", "parse_definition")
        self.assertIn("Expected ')'", str(error))

    def test_missing_function_name(self):
        self.assertParseError("def 1(x) x", "P001", "parse_definition")
        self.assertParseError("extern (x)", "P001", "parse_extern")

    def test_error_location(self):
        parser = Parser.from_string("foo(1\n  2)", filename="call.ks")
        with self.assertRaises(ParseError) as ctx:
            parser.parse_expression()
        self.assertEqual(str(ctx.exception.location), "call.ks:2:3")

    def test_nesting_limit(self):
        deep = "(" * 400 + "1" + ")" * 400
        error = self.assertParseError(deep, "P011")
        self.assertTrue(error.token.is_symbol("("))

        nested_calls = "f(" * 400 + "1" + ")" * 400
        self.assertParseError(nested_calls, "P011")

    def test_nesting_within_limit(self):
        source = "(" * 50 + "x" + ")" * 50
        self.assertEqual(expr(source), V("x"))

        self.assertEqual(Parser(Lexer("((1))"), max_depth=3).parse_expression(), N(1))
        too_deep = Parser(Lexer("(((1)))"), max_depth=3)
        with self.assertRaises(ParseError) as ctx:
            too_deep.parse_expression()
        self.assertEqual(ctx.exception.code, "P011")

    def test_depth_is_restored_after_error(self):
        parser = Parser.from_string("((1 2 (3)")
        with self.assertRaises(ParseError):
            parser.parse_expression()
        self.assertEqual(parser._depth, 0)

    def test_lexer_error_passes_through(self):
        parser = Parser.from_string("1.2.3 + 1")
        with self.assertRaises(LexerError):
            parser.parse_expression()


class TestLenientMode(unittest.TestCase):
    """strict=False consumes expected delimiters without checking them."""

    def test_unclosed_parenthesis_consumes_next_token(self):
        parser = Parser.from_string("(1+2 3", strict=False)
        self.assertEqual(parser.parse_expression(), BinaryOp("+", N(1), N(2)))
        self.assertTrue(parser.at_end)

    def test_any_token_separates_arguments(self):
        self.assertEqual(expr("foo(1;2)", strict=False), Call("foo", (N(1), N(2))))

    def test_missing_separator_swallows_argument(self):
        parser = Parser.from_string("foo(1 2)", strict=False)
        self.assertEqual(parser.parse_expression(), Call("foo", (N(1),)))
        self.assertTrue(parser.at_end)

    def test_missing_open_parenthesis_in_prototype(self):
        function = Parser.from_string("def foo x) x", strict=False).parse_definition()
        self.assertEqual(function, Function(Prototype("foo", ()), V("x")))

    def test_function_name_still_checked(self):
        parser = Parser.from_string("def 1(x) x", strict=False)
        with self.assertRaises(ParseError):
            parser.parse_definition()

    def test_end_of_input_still_fails(self):
        parser = Parser.from_string("foo(1", strict=False)
        with self.assertRaises(ParseError) as ctx:
            parser.parse_expression()
        self.assertEqual(ctx.exception.code, "P010")


class TestParserState(unittest.TestCase):
    """Lookahead handling and independence of instances."""

    def test_current_token_is_primed_lazily(self):
        parser = Parser.from_string("x")
        self.assertIsNone(parser._current)
        self.assertEqual(parser.current_token.value, "x")

    def test_next_token_advances(self):
        parser = Parser.from_string("a b")
        self.assertEqual(parser.current_token.value, "a")
        self.assertEqual(parser.next_token().value, "b")
        self.assertEqual(parser.next_token().type, TokenType.EOF)
        self.assertTrue(parser.at_end)

    def test_current_precedence(self):
        parser = Parser.from_string("* x")
        self.assertEqual(parser.current_precedence(), 40)
        parser.next_token()
        self.assertEqual(parser.current_precedence(), -1)

    def test_independent_parsers(self):
        first = Parser.from_string("1+2 3*4")
        second = Parser.from_string("a-b c")
        self.assertEqual(first.parse_expression(), BinaryOp("+", N(1), N(2)))
        self.assertEqual(second.parse_expression(), BinaryOp("-", V("a"), V("b")))
        self.assertEqual(first.parse_expression(), BinaryOp("*", N(3), N(4)))
        self.assertEqual(second.parse_expression(), V("c"))


if __name__ == "__main__":
    unittest.main()
