"""
Core expression module for symbolic differentiation.

DERIVO - Derivatives of Expressions via Reducing Immutable Vertex Operations

This module provides the immutable expression tree and the smart
constructors (add, multiply, power, ln) that fold a fixed set of
algebraic identities while building new nodes.
"""

from typing import Dict, Optional, Tuple

# Signed 64-bit range for literal values
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


# ============================================================
# Errors
# ============================================================

class DerivoError(Exception):
    """Base class for errors raised by derivo."""


class IntegerOverflowError(DerivoError, OverflowError):
    """A literal or folded constant does not fit in a signed 64-bit integer."""


class DomainError(DerivoError, ArithmeticError):
    """A literal operation has no integer result (e.g. 0^-1)."""


def checked(value: int) -> int:
    """
    Return value unchanged if it fits in a signed 64-bit integer.

    Raises:
        IntegerOverflowError: If value is outside [INT_MIN, INT_MAX]
    """
    if value < INT_MIN or value > INT_MAX:
        raise IntegerOverflowError(f"integer overflow: {value} does not fit in 64 bits")
    return value


# ============================================================
# Node Model
# ============================================================

class Expr:
    """
    Base class for immutable expression nodes.

    Nodes compare structurally and may be shared freely between
    parents; no node is ever modified after construction.
    """

    __slots__ = ()

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def children(self) -> Tuple['Expr', ...]:
        """Return the direct subexpressions."""
        return ()

    def __str__(self) -> str:
        from .engine import to_string
        return to_string(self)


class Literal(Expr):
    """An integer constant."""

    __slots__ = ('value',)

    def __init__(self, value: int):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"Literal: value must be an int, got {type(value).__name__}")
        object.__setattr__(self, 'value', checked(value))

    def __eq__(self, other):
        if isinstance(other, Literal):
            return self.value == other.value
        if isinstance(other, Expr):
            return False
        return NotImplemented

    def __hash__(self):
        return hash((Literal, self.value))

    def __repr__(self) -> str:
        return f"Literal({self.value})"


class Variable(Expr):
    """A named symbolic leaf."""

    __slots__ = ('name',)

    def __init__(self, name: str):
        if not isinstance(name, str):
            raise TypeError(f"Variable: name must be a string, got {type(name).__name__}")
        if not name:
            raise ValueError("Variable: name must not be empty")
        object.__setattr__(self, 'name', name)

    def __eq__(self, other):
        if isinstance(other, Variable):
            return self.name == other.name
        if isinstance(other, Expr):
            return False
        return NotImplemented

    def __hash__(self):
        return hash((Variable, self.name))

    def __repr__(self) -> str:
        return f"Variable({self.name!r})"


class _Binary(Expr):
    """Shared behaviour for the two-child node types."""

    __slots__ = ('left', 'right')

    def __init__(self, left: Expr, right: Expr):
        for child in (left, right):
            if not isinstance(child, Expr):
                raise TypeError(f"{type(self).__name__}: operands must be expressions, "
                                f"got {type(child).__name__}")
        object.__setattr__(self, 'left', left)
        object.__setattr__(self, 'right', right)

    def children(self) -> Tuple[Expr, ...]:
        return (self.left, self.right)

    def __eq__(self, other):
        if other is self:
            return True
        if type(other) is type(self):
            return self.left == other.left and self.right == other.right
        if isinstance(other, Expr):
            return False
        return NotImplemented

    def __hash__(self):
        return hash((type(self), self.left, self.right))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.left!r}, {self.right!r})"


class Sum(_Binary):
    """left + right"""

    __slots__ = ()


class Product(_Binary):
    """left * right"""

    __slots__ = ()


class Power(_Binary):
    """base ^ exponent"""

    __slots__ = ()

    @property
    def base(self) -> Expr:
        return self.left

    @property
    def exponent(self) -> Expr:
        return self.right


class Log(Expr):
    """Natural logarithm of its argument."""

    __slots__ = ('argument',)

    def __init__(self, argument: Expr):
        if not isinstance(argument, Expr):
            raise TypeError(f"Log: argument must be an expression, got {type(argument).__name__}")
        object.__setattr__(self, 'argument', argument)

    def children(self) -> Tuple[Expr, ...]:
        return (self.argument,)

    def __eq__(self, other):
        if isinstance(other, Log):
            return self.argument == other.argument
        if isinstance(other, Expr):
            return False
        return NotImplemented

    def __hash__(self):
        return hash((Log, self.argument))

    def __repr__(self) -> str:
        return f"Log({self.argument!r})"


# Shared leaves
ZERO = Literal(0)
ONE = Literal(1)
MINUS_ONE = Literal(-1)


# ============================================================
# Predicates
# ============================================================

def constant(exp: Expr) -> bool:
    """Check if an expression is an integer literal."""
    return isinstance(exp, Literal)


def variable(exp: Expr) -> bool:
    """Check if an expression is a variable."""
    return isinstance(exp, Variable)


def compound(exp: Expr) -> bool:
    """Check if an expression has subexpressions."""
    return isinstance(exp, (_Binary, Log))


def is_literal(exp: Expr, value: int) -> bool:
    """Check if an expression is the literal with the given value."""
    return isinstance(exp, Literal) and exp.value == value


def count(exp: Expr) -> int:
    """
    Count the nodes of an expression.

    Literals and variables count 1, binary nodes add their children's
    counts and Log passes its argument's count through. A shared
    subtree counts once per parent but is only walked once.
    """
    seen: Dict[int, int] = {}

    def loop(e: Expr) -> int:
        key = id(e)
        if key in seen:
            return seen[key]
        if isinstance(e, (Literal, Variable)):
            n = 1
        elif isinstance(e, _Binary):
            n = loop(e.left) + loop(e.right)
        elif isinstance(e, Log):
            n = loop(e.argument)
        else:
            raise TypeError(f"count: not an expression: {e!r}")
        seen[key] = n
        return n

    return loop(exp)


# ============================================================
# Integer Exponentiation
# ============================================================

def pown(base: int, exponent: int) -> int:
    """
    Raise an integer to an integer power, checking for 64-bit overflow.

    Non-negative exponents use repeated squaring. A negative exponent
    only has an exact integer result for base 1 or -1.

    Args:
        base: Integer base
        exponent: Integer exponent

    Returns:
        base ** exponent

    Raises:
        IntegerOverflowError: If any intermediate result overflows
        DomainError: If exponent is negative and the result is not an
            integer (including 0 to a negative power)
    """
    if exponent < 0:
        if base == 1:
            return 1
        if base == -1:
            return 1 if exponent % 2 == 0 else -1
        if base == 0:
            raise DomainError(f"0^{exponent} is undefined")
        raise DomainError(f"{base}^{exponent} is not an integer")
    if exponent == 0:
        return 1
    if exponent == 1:
        return base
    half = pown(base, exponent // 2)
    result = checked(half * half)
    if exponent % 2:
        result = checked(result * base)
    return result


# ============================================================
# Smart Constructors
# ============================================================

def decompose_add(exp: Expr) -> Tuple[int, Optional[Expr]]:
    """
    Split a term into its leading constant and symbolic remainder.

    Examples:
        Literal(3)                   -> (3, None)
        Sum(Literal(3), Variable(x)) -> (3, Variable(x))
        Variable(x)                  -> (0, Variable(x))
    """
    if isinstance(exp, Literal):
        return exp.value, None
    if isinstance(exp, Sum) and isinstance(exp.left, Literal):
        return exp.left.value, exp.right
    return 0, exp


def decompose_mul(exp: Expr) -> Tuple[int, Optional[Expr]]:
    """Split a factor into its leading coefficient and symbolic remainder."""
    if isinstance(exp, Literal):
        return exp.value, None
    if isinstance(exp, Product) and isinstance(exp.left, Literal):
        return exp.left.value, exp.right
    return 1, exp


def _combine(f: Optional[Expr], g: Optional[Expr], node) -> Optional[Expr]:
    """Join two optional remainders with the given node type."""
    if f is None:
        return g
    if g is None:
        return f
    return node(f, g)


def add(a: Expr, b: Expr) -> Expr:
    """
    Build a + b, folding leading constants.

    Only the leading literal of each operand is folded; the symbolic
    remainders are joined without further simplification.

    Examples:
        add(Literal(2), Literal(3))                 -> Literal(5)
        add(Literal(0), x)                          -> x
        add(Sum(Literal(1), x), Sum(Literal(2), y)) -> Sum(Literal(3), Sum(x, y))
    """
    m, f = decompose_add(a)
    n, g = decompose_add(b)
    total = checked(m + n)

    rest = _combine(f, g, Sum)
    if rest is None:
        return Literal(total)
    if total == 0:
        return rest
    return Sum(Literal(total), rest)


def multiply(a: Expr, b: Expr) -> Expr:
    """
    Build a * b, folding leading coefficients.

    A zero coefficient absorbs the whole product without building
    either remainder.

    Examples:
        multiply(Literal(2), Literal(3)) -> Literal(6)
        multiply(Literal(0), x)          -> Literal(0)
        multiply(x, Literal(1))          -> x
    """
    m, f = decompose_mul(a)
    n, g = decompose_mul(b)
    total = checked(m * n)

    if total == 0:
        return ZERO

    rest = _combine(f, g, Product)
    if rest is None:
        return Literal(total)
    if total == 1:
        return rest
    return Product(Literal(total), rest)


def power(base: Expr, exponent: Expr) -> Expr:
    """
    Build base ^ exponent.

    Folds integer powers of integers, x^0 = 1, x^1 = x and 0^x = 0.
    A negative literal exponent on a literal base folds only when the
    result is an exact integer; otherwise the power stays symbolic.
    0 to a negative literal folds to 0 like any other power of zero.

    Raises:
        IntegerOverflowError: If a folded power overflows 64 bits
    """
    if isinstance(base, Literal) and isinstance(exponent, Literal):
        if exponent.value < 0:
            if base.value == 0:
                return ZERO
            if abs(base.value) > 1:
                return Power(base, exponent)
        return Literal(pown(base.value, exponent.value))
    if is_literal(exponent, 0):
        return ONE
    if is_literal(exponent, 1):
        return base
    if is_literal(base, 0):
        return ZERO
    return Power(base, exponent)


def ln(a: Expr) -> Expr:
    """Build the natural logarithm of a, folding ln(1) = 0."""
    if is_literal(a, 1):
        return ZERO
    return Log(a)


# Convenience alias
mul = multiply
