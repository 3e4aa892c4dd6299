"""
DERIVO - Derivatives of Expressions via Reducing Immutable Vertex Operations

A small computer-algebra kernel for repeated symbolic differentiation.

Quick Start:
    from derivo import E, differentiate, to_string

    f = E("(^ x x)")
    df = differentiate(f, "x")
    print(to_string(df))   # => x^x*(x*x^-1 + ln(x))

Smart Constructors:
    add(a, b)        - a + b, folding leading constants
    multiply(a, b)   - a * b, folding leading coefficients, 0 absorbs
    power(a, b)      - a ^ b, folding integer powers, a^0, a^1, 0^b
    ln(a)            - ln(a), folding ln(1)

Expression Syntax (s-expressions):
    (+ x 1)  (* 2 x)  (^ x x)  (ln x)  42  x

Repeated Differentiation:
    from derivo import DerivativeEngine, E

    engine = DerivativeEngine("x")
    for step in engine.steps(E("(^ x x)"), 3):
        print(step.format())
"""

__version__ = "0.1.0"
__author__ = "spinoza"

# Node model and smart constructors
from .expr import (
    Expr,
    Literal,
    Variable,
    Sum,
    Product,
    Power,
    Log,
    ZERO,
    ONE,
    MINUS_ONE,
    INT_MIN,
    INT_MAX,
    # Errors
    DerivoError,
    IntegerOverflowError,
    DomainError,
    # Predicates
    constant,
    variable,
    compound,
    count,
    # Smart constructors
    add,
    multiply,
    mul,
    power,
    ln,
    pown,
    decompose_add,
    decompose_mul,
)

# Differentiation, rendering and s-expressions
from .engine import (
    differentiate,
    d,
    nest,
    format_expr,
    to_string,
    parse_sexpr,
    format_sexpr,
    E,
    DerivativeStep,
    DerivativeTrace,
    DerivativeEngine,
    MAX_RENDER_NODES,
    DEFAULT_VARIABLE,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Node model
    "Expr",
    "Literal",
    "Variable",
    "Sum",
    "Product",
    "Power",
    "Log",
    "ZERO",
    "ONE",
    "MINUS_ONE",
    "INT_MIN",
    "INT_MAX",
    # Errors
    "DerivoError",
    "IntegerOverflowError",
    "DomainError",
    # Predicates
    "constant",
    "variable",
    "compound",
    "count",
    # Smart constructors
    "add",
    "multiply",
    "mul",
    "power",
    "ln",
    "pown",
    "decompose_add",
    "decompose_mul",
    # Differentiation
    "differentiate",
    "d",
    "nest",
    # Rendering
    "format_expr",
    "to_string",
    "MAX_RENDER_NODES",
    "DEFAULT_VARIABLE",
    # S-expressions
    "parse_sexpr",
    "format_sexpr",
    # Expression builder
    "E",
    # Engine
    "DerivativeStep",
    "DerivativeTrace",
    "DerivativeEngine",
]
