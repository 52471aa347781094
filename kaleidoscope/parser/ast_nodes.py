"""
Abstract Syntax Tree node definitions for Kaleidoscope.

The tree is a closed set of variants: four expression kinds plus the two
declaration kinds, Prototype and Function. Every node is an immutable
dataclass tagged with an ASTNodeType, and consumers dispatch over that
tag (see ASTVisitor) rather than relying on per-node behaviour.

Source spans are carried for diagnostics but never take part in
equality, so two trees parsed from differently formatted text compare
equal when their shape is the same.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, List, Optional, Sequence, Tuple, Union

from ..lexer.tokens import SourceLocation, BINOP_PRECEDENCE


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    # Expressions
    NUMBER = "NumberLiteral"
    VARIABLE = "VariableRef"
    BINARY_OP = "BinaryOp"
    CALL = "Call"

    # Declarations
    PROTOTYPE = "Prototype"
    FUNCTION = "Function"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a span of source code (start and end locations)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename == self.end.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start}-{self.end}"


class ASTNode:
    """Base class for all AST nodes."""

    node_type: ClassVar[ASTNodeType]
    span: Optional[SourceSpan]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        """Accept a visitor (visitor pattern)."""
        return visitor.visit(self)

    def children(self) -> List['ASTNode']:
        """Get all child nodes, in source order."""
        return []


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class NumberLiteral(ASTNode):
    """Numeric literal. The language has a single type: float64."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.NUMBER

    value: float
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))


@dataclass(frozen=True)
class VariableRef(ASTNode):
    """Reference to a variable (function parameter) by name."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.VARIABLE

    name: str
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("VariableRef name must be non-empty")


@dataclass(frozen=True)
class BinaryOp(ASTNode):
    """Binary operation; operator is one of the precedence-table entries."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.BINARY_OP

    operator: str
    left: 'Expression'
    right: 'Expression'
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.operator not in BINOP_PRECEDENCE:
            raise ValueError(f"Unknown binary operator: {self.operator!r}")

    def children(self) -> List[ASTNode]:
        return [self.left, self.right]


@dataclass(frozen=True)
class Call(ASTNode):
    """Function call with positional arguments."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.CALL

    callee: str
    args: Tuple['Expression', ...] = ()
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.callee:
            raise ValueError("Call callee must be non-empty")
        object.__setattr__(self, "args", tuple(self.args))

    def children(self) -> List[ASTNode]:
        return list(self.args)


Expression = Union[NumberLiteral, VariableRef, BinaryOp, Call]

EXPRESSION_TYPES = (NumberLiteral, VariableRef, BinaryOp, Call)


# ============================================================================
# Declarations
# ============================================================================

@dataclass(frozen=True)
class Prototype(ASTNode):
    """
    A function's calling shape: its name and parameter names.

    The name is empty for the anonymous function wrapping a top-level
    expression. Parameter names are not checked for duplicates here.
    """
    node_type: ClassVar[ASTNodeType] = ASTNodeType.PROTOTYPE

    name: str
    params: Tuple[str, ...] = ()
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(self.params))

    @property
    def is_anonymous(self) -> bool:
        return self.name == ""

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class Function(ASTNode):
    """Function definition: a prototype plus a single body expression."""
    node_type: ClassVar[ASTNodeType] = ASTNodeType.FUNCTION

    prototype: Prototype
    body: Expression
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.prototype, Prototype):
            raise ValueError("Function prototype must be a Prototype")
        if not isinstance(self.body, EXPRESSION_TYPES):
            raise ValueError("Function body must be a single expression")

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def is_anonymous(self) -> bool:
        return self.prototype.is_anonymous

    def children(self) -> List[ASTNode]:
        return [self.prototype, self.body]


def anonymous_function(body: Expression, span: Optional[SourceSpan] = None) -> Function:
    """Wrap a top-level expression in a nameless, parameterless Function."""
    return Function(Prototype("", (), span), body, span)


# ============================================================================
# Traversal
# ============================================================================

class ASTVisitor:
    """
    Visitor over the closed set of node variants.

    visit() dispatches on node_type. Subclasses override the visit_*
    methods they care about; reaching one that is not overridden raises
    NotImplementedError, so a consumer that forgets a variant fails loudly.
    """

    _METHODS = {
        ASTNodeType.NUMBER: "visit_number",
        ASTNodeType.VARIABLE: "visit_variable",
        ASTNodeType.BINARY_OP: "visit_binary_op",
        ASTNodeType.CALL: "visit_call",
        ASTNodeType.PROTOTYPE: "visit_prototype",
        ASTNodeType.FUNCTION: "visit_function",
    }

    def visit(self, node: ASTNode) -> Any:
        """Visit a node, dispatching on its type."""
        method_name = self._METHODS.get(getattr(node, "node_type", None))
        if method_name is None:
            raise TypeError(f"Not an AST node: {node!r}")
        return getattr(self, method_name)(node)

    def _unhandled(self, node: ASTNode) -> Any:
        raise NotImplementedError(
            f"{type(self).__name__} does not handle {node.node_type.value}"
        )

    def visit_number(self, node: NumberLiteral) -> Any:
        return self._unhandled(node)

    def visit_variable(self, node: VariableRef) -> Any:
        return self._unhandled(node)

    def visit_binary_op(self, node: BinaryOp) -> Any:
        return self._unhandled(node)

    def visit_call(self, node: Call) -> Any:
        return self._unhandled(node)

    def visit_prototype(self, node: Prototype) -> Any:
        return self._unhandled(node)

    def visit_function(self, node: Function) -> Any:
        return self._unhandled(node)


def walk(node: ASTNode) -> Sequence[ASTNode]:
    """Return the node and all of its descendants in pre-order."""
    result = []
    stack = [node]
    while stack:
        current = stack.pop()
        result.append(current)
        stack.extend(reversed(current.children()))
    return result
