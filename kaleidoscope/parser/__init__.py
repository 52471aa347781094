"""
Kaleidoscope Parser Package

Recursive descent parser with precedence climbing for binary operators.
Produces immutable AST nodes carrying source spans.

Key Features:
- One token of lookahead, no backtracking
- Fixed operator precedence table (<, +, -, *)
- Strict delimiter checking, with an opt-in lenient mode
- Canonical source printer whose output re-parses to the same tree
"""

from .ast_nodes import (
    ASTNode, ASTNodeType, ASTVisitor, SourceSpan, Expression,
    NumberLiteral, VariableRef, BinaryOp, Call, Prototype, Function,
    anonymous_function, walk
)
from .parser import Parser
from .printer import SourcePrinter, to_source, extern_to_source
from .errors import ParseError

__all__ = [
    # Core parser
    "Parser",

    # AST nodes
    "ASTNode", "ASTNodeType", "ASTVisitor", "SourceSpan", "Expression",
    "NumberLiteral", "VariableRef", "BinaryOp", "Call", "Prototype", "Function",
    "anonymous_function", "walk",

    # Printing
    "SourcePrinter", "to_source", "extern_to_source",

    # Error handling
    "ParseError",
]
