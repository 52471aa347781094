"""
Kaleidoscope Backend Package

Optional code generation from the AST. Requires llvmlite (the ``llvm``
extra); importing this package without it works, constructing a backend
does not.
"""

from .llvm_backend import LLVMBackend, CodegenError, HAS_LLVMLITE, ANONYMOUS_FUNCTION_NAME

__all__ = [
    "LLVMBackend",
    "CodegenError",
    "HAS_LLVMLITE",
    "ANONYMOUS_FUNCTION_NAME",
]
