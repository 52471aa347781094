"""
Canonical source printer for Kaleidoscope ASTs.

Output re-parses to a structurally identical tree. Binary operations carry
parentheses only where precedence and left associativity would otherwise
build a different tree, and numbers are written as plain positional
decimals, since the lexer understands neither signs nor exponents.
"""

import math
from decimal import Decimal

from ..lexer.tokens import BINOP_PRECEDENCE
from .ast_nodes import (
    ASTNode, ASTNodeType, ASTVisitor, NumberLiteral, VariableRef, BinaryOp, Call,
    Prototype, Function
)


def format_number(value: float) -> str:
    """Write a float the way the lexer reads it back: digits and one '.'."""
    if not math.isfinite(value):
        raise ValueError(f"Cannot write non-finite number {value!r} as a literal")
    if value < 0:
        raise ValueError(f"Cannot write negative number {value!r} as a literal")
    if value == 0:
        return "0.0"

    text = format(Decimal(repr(value)), "f")
    if "." not in text:
        text += ".0"
    return text


def _binds_looser(operand: ASTNode, precedence: int, or_equal: bool) -> bool:
    """Whether an operand needs parentheses under an operator of ``precedence``."""
    if operand.node_type != ASTNodeType.BINARY_OP:
        return False
    operand_precedence = BINOP_PRECEDENCE[operand.operator]
    if or_equal:
        return operand_precedence <= precedence
    return operand_precedence < precedence


class SourcePrinter(ASTVisitor):
    """Renders any node back to source text."""

    def visit_number(self, node: NumberLiteral) -> str:
        return format_number(node.value)

    def visit_variable(self, node: VariableRef) -> str:
        return node.name

    def visit_binary_op(self, node: BinaryOp) -> str:
        """
        Render an operator tree with an explicit stack.

        The parser builds operator chains in a loop, so a long sum is a
        left-nested tree thousands of levels deep.
        """
        rendered = []
        stack = [(node, False)]
        while stack:
            current, operands_done = stack.pop()
            if current.node_type != ASTNodeType.BINARY_OP:
                rendered.append(self.visit(current))
            elif not operands_done:
                stack.append((current, True))
                stack.append((current.right, False))
                stack.append((current.left, False))
            else:
                right = rendered.pop()
                left = rendered.pop()
                precedence = BINOP_PRECEDENCE[current.operator]
                if _binds_looser(current.left, precedence, or_equal=False):
                    left = f"({left})"
                if _binds_looser(current.right, precedence, or_equal=True):
                    right = f"({right})"
                rendered.append(f"{left} {current.operator} {right}")
        return rendered.pop()

    def visit_call(self, node: Call) -> str:
        args = ", ".join(self.visit(arg) for arg in node.args)
        return f"{node.callee}({args})"

    def visit_prototype(self, node: Prototype) -> str:
        return f"{node.name}({' '.join(node.params)})"

    def visit_function(self, node: Function) -> str:
        body = self.visit(node.body)
        if node.is_anonymous:
            return body
        return f"def {self.visit(node.prototype)} {body}"


def to_source(node: ASTNode) -> str:
    """Render a node as canonical source text."""
    return SourcePrinter().visit(node)


def extern_to_source(prototype: Prototype) -> str:
    """Render a prototype as an extern declaration."""
    return f"extern {to_source(prototype)}"
