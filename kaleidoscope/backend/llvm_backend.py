"""
LLVM Backend for Kaleidoscope.

Lowers Prototype and Function nodes to LLVM IR with llvmlite. Every value
is a double; '<' produces 0.0 or 1.0. All functions generated by one
backend instance land in the same module, so an extern declared earlier
can be called (and later defined) by the functions that follow.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field

try:
    import llvmlite.binding as llvm
    import llvmlite.ir as ll
    HAS_LLVMLITE = True
except ImportError:
    HAS_LLVMLITE = False

from ..parser.ast_nodes import (
    ASTVisitor, NumberLiteral, VariableRef, BinaryOp, Call, Prototype, Function, walk
)


ANONYMOUS_FUNCTION_NAME = "__anon_expr"


class CodegenError(Exception):
    """Raised when an AST cannot be lowered to LLVM IR."""
    pass


@dataclass
class LLVMGenContext:
    """Context for LLVM code generation."""
    module: Optional['ll.Module'] = None
    builder: Optional['ll.IRBuilder'] = None
    current_function: Optional['ll.Function'] = None
    named_values: Dict[str, 'll.Argument'] = field(default_factory=dict)


class LLVMBackend(ASTVisitor):
    """
    LLVM backend for Kaleidoscope.

    Expression visits return llvmlite values; prototype and function
    visits return the llvmlite Function they declared or defined.
    """

    def __init__(self, module_name: str = "kaleidoscope", target_triple: Optional[str] = None):
        """
        Initialize the LLVM backend.

        Args:
            module_name: Name of the generated LLVM module
            target_triple: Target triple (e.g., "x86_64-pc-linux-gnu"),
                defaults to the host
        """
        if not HAS_LLVMLITE:
            raise ImportError("llvmlite is required for LLVM backend. Install with: pip install llvmlite")

        self.double = ll.DoubleType()
        self.target_triple = target_triple or llvm.get_default_triple()
        self.context = LLVMGenContext(module=ll.Module(name=module_name))
        self.context.module.triple = self.target_triple
        self._anonymous_count = 0

    @property
    def module(self) -> 'll.Module':
        return self.context.module

    # Entry points

    def generate_prototype(self, prototype: Prototype) -> 'll.Function':
        """Declare a function (e.g. from an extern)."""
        return self.visit(prototype)

    def generate_function(self, function: Function) -> 'll.Function':
        """Define a function, declaring it first if needed."""
        return self.visit(function)

    def generate(self, nodes: List) -> 'll.Module':
        """Generate every prototype/function in order and return the module."""
        for node in nodes:
            self.visit(node)
        return self.module

    def print_llvm_ir(self) -> str:
        return str(self.module)

    def verify(self) -> 'llvm.ModuleRef':
        """Parse the textual IR back with LLVM and verify it."""
        llvm_module = llvm.parse_assembly(str(self.module))
        llvm_module.verify()
        return llvm_module

    # Expressions

    def visit_number(self, node: NumberLiteral) -> 'll.Constant':
        return ll.Constant(self.double, node.value)

    def visit_variable(self, node: VariableRef):
        try:
            return self.context.named_values[node.name]
        except KeyError:
            raise CodegenError(f"Unknown variable name: {node.name}") from None

    def visit_binary_op(self, node: BinaryOp):
        lhs = self.visit(node.left)
        rhs = self.visit(node.right)
        builder = self.context.builder

        if node.operator == "<":
            cmp = builder.fcmp_unordered("<", lhs, rhs, "cmptmp")
            # Convert the i1 result to 0.0 / 1.0
            return builder.uitofp(cmp, self.double, "booltmp")
        if node.operator == "+":
            return builder.fadd(lhs, rhs, "addtmp")
        if node.operator == "-":
            return builder.fsub(lhs, rhs, "subtmp")
        if node.operator == "*":
            return builder.fmul(lhs, rhs, "multmp")

        raise CodegenError(f"Invalid binary operator: {node.operator}")

    def visit_call(self, node: Call):
        callee = self._lookup_callee(node)
        args = [self.visit(arg) for arg in node.args]
        return self.context.builder.call(callee, args, "calltmp")

    # Declarations

    def visit_prototype(self, node: Prototype) -> 'll.Function':
        name = node.name or self._anonymous_name()

        func = self._existing_function(name, node.arity)
        if func is None:
            function_type = ll.FunctionType(self.double, [self.double] * node.arity)
            func = ll.Function(self.module, function_type, name)

        # Names are registered in the function scope; re-setting one would dedupe it
        for arg, param in zip(func.args, node.params):
            if arg.name != param:
                arg.name = param
        return func

    def visit_function(self, node: Function) -> 'll.Function':
        """
        Define a function.

        Everything that can fail is checked before the module is touched,
        so a rejected definition leaves no declaration or name behind.
        """
        if node.prototype.name:
            existing = self._existing_function(node.prototype.name, node.prototype.arity)
            if existing is not None and not existing.is_declaration:
                raise CodegenError(f"Function {existing.name} cannot be redefined")
        self._check_body(node)

        func = self.visit(node.prototype)
        block = func.append_basic_block("entry")
        self.context.builder = ll.IRBuilder(block)
        self.context.current_function = func
        self.context.named_values = dict(zip(node.prototype.params, func.args))

        try:
            ret_val = self.visit(node.body)
            self.context.builder.ret(ret_val)
        finally:
            self.context.builder = None
            self.context.current_function = None
            self.context.named_values = {}

        return func

    # Checks

    def _existing_function(self, name: str, arity: int) -> Optional['ll.Function']:
        existing = self.module.globals.get(name)
        if existing is None:
            return None
        if not isinstance(existing, ll.Function):
            raise CodegenError(f"Redefinition of global {name}")
        if len(existing.args) != arity:
            raise CodegenError(f"Redefinition of function {name} with a different number of arguments")
        return existing

    def _lookup_callee(self, node: Call) -> 'll.Function':
        callee = self.module.globals.get(node.callee)
        if not isinstance(callee, ll.Function):
            raise CodegenError(f"Unknown function referenced: {node.callee}")
        _check_arity(node, len(callee.args))
        return callee

    def _check_body(self, node: Function):
        """Raise CodegenError for any variable or call the body cannot resolve."""
        prototype = node.prototype
        for expr in walk(node.body):
            if isinstance(expr, VariableRef) and expr.name not in prototype.params:
                raise CodegenError(f"Unknown variable name: {expr.name}")
            if isinstance(expr, Call):
                if expr.callee == prototype.name:
                    # Recursive call to the function being defined
                    _check_arity(expr, prototype.arity)
                else:
                    self._lookup_callee(expr)

    def _anonymous_name(self) -> str:
        name = ANONYMOUS_FUNCTION_NAME
        if self._anonymous_count:
            name = f"{ANONYMOUS_FUNCTION_NAME}.{self._anonymous_count}"
        self._anonymous_count += 1
        return name


def _check_arity(node: Call, expected: int):
    if expected != len(node.args):
        raise CodegenError(
            f"Incorrect number of arguments passed to {node.callee}: "
            f"expected {expected}, got {len(node.args)}"
        )
