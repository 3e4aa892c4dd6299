"""
Differentiation Engine and Renderer for DERIVO

DERIVO - Derivatives of Expressions via Reducing Immutable Vertex Operations

This module differentiates expression trees, renders them as infix text
and reads/writes them as s-expressions.

Infix Rendering:
    Sum      a + b     (precedence 1)
    Product  a*b       (precedence 2)
    Power    a^b       (precedence 3, exponent one level tighter)
    Log      ln(a)     (self-delimiting)

    Expressions with more than MAX_RENDER_NODES nodes render as <<N>>.

S-expression Format:
    (+ x 1)          - sum (n-ary, folds left)
    (* 2 x y)        - product (n-ary, folds left)
    (^ x x)          - power
    (ln x)           - natural log
    42, -1           - integer literals
    x, foo           - variables

Iterated Differentiation:
    engine = DerivativeEngine()
    final, trace = engine.iterate(E("(^ x x)"), 3)
    print(trace.format())
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple, TypeVar, Union

from .expr import (
    Expr, Literal, Variable, Sum, Product, Power, Log,
    ZERO, ONE, MINUS_ONE,
    add, multiply, power, ln, count,
)

logger = logging.getLogger(__name__)

MAX_RENDER_NODES = 100
DEFAULT_VARIABLE = "x"

PREC_SUM = 1
PREC_PRODUCT = 2
PREC_POWER = 3

T = TypeVar("T")


# ============================================================
# Differentiation
# ============================================================

def differentiate(exp: Expr, x: Union[str, Variable]) -> Expr:
    """
    Differentiate an expression with respect to a variable.

    The derivative is built only through the smart constructors, so
    every intermediate result is already simplified as far as they
    allow. Shared subtrees are reused, not copied, and are
    differentiated again wherever they occur.

    Args:
        exp: Expression to differentiate
        x: Variable name (or Variable) to differentiate by

    Returns:
        The derivative d(exp)/dx

    Examples:
        differentiate(Variable("x"), "x") -> Literal(1)
        differentiate(E("(* x x)"), "x")  -> Sum(Variable('x'), Variable('x'))
    """
    if isinstance(x, Variable):
        x = x.name

    def d(f: Expr) -> Expr:
        if isinstance(f, Variable):
            return ONE if f.name == x else ZERO

        if isinstance(f, Literal):
            return ZERO

        if isinstance(f, Sum):
            return add(d(f.left), d(f.right))

        if isinstance(f, Product):
            g, h = f.left, f.right
            return add(multiply(g, d(h)), multiply(h, d(g)))

        if isinstance(f, Power):
            # d(g^h) = g^h * (h*g'/g + ln(g)*h'), applied whatever the sign of g
            g, h = f.base, f.exponent
            return multiply(
                f,
                add(multiply(multiply(h, d(g)), power(g, MINUS_ONE)),
                    multiply(ln(g), d(h))))

        if isinstance(f, Log):
            g = f.argument
            return multiply(d(g), power(g, MINUS_ONE))

        raise TypeError(f"differentiate: not an expression: {f!r}")

    return d(exp)


# Convenience alias
d = differentiate


def nest(n: int, f: Callable[[T], T], x: T) -> T:
    """Apply f to x n times."""
    for _ in range(n):
        x = f(x)
    return x


# ============================================================
# Rendering
# ============================================================

def format_expr(exp: Expr, context: int = PREC_SUM) -> str:
    """
    Format an expression as infix text with minimal parentheses.

    A subexpression is parenthesized when its precedence is lower than
    the precedence its position requires. A power base sits at power
    precedence and its exponent one level tighter, so a power in an
    exponent is parenthesized: x^(y^x).

    Args:
        exp: Expression to format
        context: Minimum precedence required by the enclosing position

    Examples:
        Product(x, Sum(x, y))  -> "x*(x + y)"
        Power(x, Literal(-1))  -> "x^-1"
    """
    def bracket(prec: int, body: str) -> str:
        if prec < context:
            return "(" + body + ")"
        return body

    if isinstance(exp, Variable):
        return exp.name

    if isinstance(exp, Literal):
        return str(exp.value)

    if isinstance(exp, Sum):
        return bracket(PREC_SUM, format_expr(exp.left, PREC_SUM) + " + "
                       + format_expr(exp.right, PREC_SUM))

    if isinstance(exp, Product):
        return bracket(PREC_PRODUCT, format_expr(exp.left, PREC_PRODUCT) + "*"
                       + format_expr(exp.right, PREC_PRODUCT))

    if isinstance(exp, Power):
        return bracket(PREC_POWER, format_expr(exp.base, PREC_POWER) + "^"
                       + format_expr(exp.exponent, PREC_POWER + 1))

    if isinstance(exp, Log):
        return "ln(" + format_expr(exp.argument, PREC_SUM) + ")"

    raise TypeError(f"format_expr: not an expression: {exp!r}")


def to_string(exp: Expr, limit: int = MAX_RENDER_NODES) -> str:
    """
    Render an expression, or <<N>> if it has more than limit nodes.

    Examples:
        to_string(E("(^ x x)"))  -> "x^x"
        to_string(huge)          -> "<<2043>>"
    """
    n = count(exp)
    if n > limit:
        return f"<<{n}>>"
    return format_expr(exp)


# ============================================================
# S-expressions
# ============================================================

def _nary(identity: Expr, binary_op: Callable[[Expr, Expr], Expr]):
    """Create an n-ary builder that folds left from the first argument."""
    def build(args: List[Expr]) -> Expr:
        if not args:
            return identity
        result = args[0]
        for a in args[1:]:
            result = binary_op(result, a)
        return result
    return build


def _fixed(arity: int, f: Callable[..., Expr]):
    """Create a builder for an operator that takes exactly arity arguments."""
    def build(args: List[Expr]) -> Expr:
        if len(args) != arity:
            raise ValueError(f"expected {arity} argument(s), got {len(args)}")
        return f(*args)
    return build


OPERATORS: Dict[str, Callable[[List[Expr]], Expr]] = {
    "+": _nary(ZERO, add),
    "*": _nary(ONE, multiply),
    "^": _fixed(2, power),
    "ln": _fixed(1, ln),
}


def apply_operator(op: str, args: List[Expr]) -> Expr:
    """
    Build op(args) through the matching smart constructor.

    Raises:
        ValueError: Unknown operator or wrong number of arguments
    """
    if op not in OPERATORS:
        raise ValueError(f"Unknown operator: {op}")
    try:
        return OPERATORS[op](list(args))
    except ValueError as e:
        raise ValueError(f"{op}: {e}") from None


def _read(s: str):
    """Read s-expression text into nested lists of atoms."""
    s = s.strip()
    if not s:
        raise ValueError("Empty expression")

    if s.startswith('('):
        depth = 0
        parts = []
        current = ''
        i = 1  # Skip opening paren
        closed = False

        while i < len(s):
            c = s[i]
            if c == '(':
                depth += 1
                current += c
            elif c == ')':
                if depth == 0:
                    if current.strip():
                        parts.append(_read(current))
                    closed = True
                    break
                depth -= 1
                current += c
            elif c in ' \t\n' and depth == 0:
                if current.strip():
                    parts.append(_read(current))
                current = ''
            else:
                current += c
            i += 1

        if not closed:
            raise ValueError(f"Unbalanced parentheses: {s}")
        trailing = s[i + 1:].strip()
        if trailing:
            raise ValueError(f"Unexpected text after expression: {trailing}")
        return parts

    if any(c in s for c in '() \t\n'):
        raise ValueError(f"Malformed atom: {s}")

    try:
        return int(s)
    except ValueError:
        return s


def _build(tree) -> Expr:
    if isinstance(tree, int):
        return Literal(tree)
    if isinstance(tree, str):
        return Variable(tree)
    if not tree:
        raise ValueError("Empty list is not an expression")
    op = tree[0]
    if not isinstance(op, str):
        raise ValueError(f"Operator must be a symbol, got {op!r}")
    return apply_operator(op, [_build(t) for t in tree[1:]])


def parse_sexpr(s: str) -> Expr:
    """
    Parse an s-expression string into an expression.

    Compound forms are built through the smart constructors, so the
    result is already simplified.

    Examples:
        "(^ x x)"     -> Power(Variable('x'), Variable('x'))
        "(+ 1 2 x)"   -> Sum(Literal(3), Variable('x'))
        "(* x 0)"     -> Literal(0)

    Raises:
        ValueError: If the text is not a well-formed expression
    """
    return _build(_read(s))


def format_sexpr(exp: Expr) -> str:
    """
    Format an expression as an s-expression string (never truncated).

    Examples:
        Power(x, x)             -> "(^ x x)"
        Sum(Literal(3), x)      -> "(+ 3 x)"
    """
    if isinstance(exp, Literal):
        return str(exp.value)
    if isinstance(exp, Variable):
        return exp.name
    if isinstance(exp, Sum):
        op = "+"
    elif isinstance(exp, Product):
        op = "*"
    elif isinstance(exp, Power):
        op = "^"
    elif isinstance(exp, Log):
        op = "ln"
    else:
        raise TypeError(f"format_sexpr: not an expression: {exp!r}")
    return "(" + " ".join([op] + [format_sexpr(c) for c in exp.children()]) + ")"


# ============================================================
# Expression Builder
# ============================================================

class _ExprBuilder:
    """
    Expression builder for DERIVO.

    Examples:
        from derivo import E

        # Parse s-expression string
        expr = E("(^ x x)")

        # Build programmatically with E.op()
        x = E.var("x")
        expr = E.op("*", E.const(2), E.op("ln", x))

        # Create variables
        x, y = E.vars("x", "y")
    """

    def __call__(self, s: str) -> Expr:
        """
        Parse an s-expression string.

        Examples:
            E("(+ x 1)") -> Sum(Literal(1), Variable('x'))
            E("(ln 1)")  -> Literal(0)
        """
        return parse_sexpr(s)

    def op(self, name: str, *args: Expr) -> Expr:
        """
        Build a compound expression through the smart constructors.

        Examples:
            E.op("+", x, E.const(0)) -> x
            E.op("^", x, x)          -> Power(x, x)
        """
        return apply_operator(name, list(args))

    def var(self, name: str) -> Variable:
        """Create a variable."""
        return Variable(name)

    def vars(self, *names: str) -> Tuple[Variable, ...]:
        """
        Create multiple variables for unpacking.

        Example:
            x, y = E.vars("x", "y")
        """
        return tuple(Variable(name) for name in names)

    def const(self, value: int) -> Literal:
        """Create an integer literal."""
        return Literal(value)

    def __repr__(self) -> str:
        return "E (expression builder)"


# Singleton instance
E = _ExprBuilder()


# ============================================================
# Iterated Differentiation
# ============================================================

class DerivativeStep:
    """A single round of differentiation."""

    def __init__(self, index: int, before: Expr, after: Expr):
        self.index = index
        self.before = before
        self.after = after

    def format(self, limit: int = MAX_RENDER_NODES) -> str:
        """Format as "D(before) = after"."""
        return f"D({to_string(self.before, limit)}) = {to_string(self.after, limit)}"

    def __repr__(self) -> str:
        return f"DerivativeStep({self.index}: {count(self.before)} -> {count(self.after)} nodes)"

    def to_dict(self, limit: int = MAX_RENDER_NODES) -> Dict:
        """Convert step to dictionary for serialization."""
        return {
            "index": self.index,
            "before": to_string(self.before, limit),
            "after": to_string(self.after, limit),
            "before_count": count(self.before),
            "after_count": count(self.after),
        }


class DerivativeTrace:
    """
    A trace of repeated differentiation rounds.

    Provides multiple formatting options:
        - format("lines"): one "D(f) = f'" line per round (default)
        - format("counts"): node counts as a chain, e.g. "2 -> 6 -> 22"
        - to_dict(): JSON-serializable dictionary
    """

    def __init__(self, limit: int = MAX_RENDER_NODES):
        self.steps: List[DerivativeStep] = []
        self.initial: Optional[Expr] = None
        self.final: Optional[Expr] = None
        self.limit = limit

    def add_step(self, step: DerivativeStep):
        self.steps.append(step)

    def format(self, style: str = "lines") -> str:
        """
        Format the trace.

        Args:
            style: One of "lines", "counts"

        Raises:
            ValueError: Unknown style
        """
        if style == "lines":
            return "\n".join(step.format(self.limit) for step in self.steps)
        elif style == "counts":
            return " -> ".join(str(n) for n in self.counts())
        raise ValueError(f"Unknown style: {style}. Use 'lines' or 'counts'")

    def counts(self) -> List[int]:
        """Node counts of the initial expression and every derivative."""
        if self.initial is None:
            return []
        return [count(self.initial)] + [count(step.after) for step in self.steps]

    def summary(self) -> str:
        """Get a brief summary of the rounds."""
        if not self.steps:
            return "No differentiation performed"
        counts = self.counts()
        return (f"{len(self.steps)} rounds, "
                f"{counts[0]} -> {counts[-1]} nodes")

    def __repr__(self) -> str:
        return f"DerivativeTrace({len(self.steps)} rounds)"

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        """Iterate over differentiation steps."""
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any differentiation was done."""
        return len(self.steps) > 0

    def to_dict(self) -> Dict:
        """Convert trace to dictionary for JSON serialization."""
        return {
            "initial": to_string(self.initial, self.limit) if self.initial is not None else None,
            "final": to_string(self.final, self.limit) if self.final is not None else None,
            "steps": [step.to_dict(self.limit) for step in self.steps],
            "round_count": len(self.steps),
        }


class DerivativeEngine:
    """
    Differentiates expressions with respect to one variable.

    Example:
        from derivo import DerivativeEngine, E

        engine = DerivativeEngine()          # d/dx
        engine(E("(* x x)"))                 # => Sum(x, x)

        for step in engine.steps(E("(^ x x)"), 3):
            print(step.format())

        final, trace = engine.iterate(E("(^ x x)"), 3)
    """

    def __init__(self, variable: Union[str, Variable] = DEFAULT_VARIABLE,
                 limit: int = MAX_RENDER_NODES):
        """
        Initialize a DerivativeEngine.

        Args:
            variable: Variable to differentiate by (default: "x")
            limit: Largest node count rendered in full (default: 100)
        """
        if isinstance(variable, Variable):
            variable = variable.name
        self.variable = variable
        self.limit = limit

    def __call__(self, expr: Expr) -> Expr:
        """Differentiate once: engine(expr)."""
        return differentiate(expr, self.variable)

    def render(self, expr: Expr) -> str:
        """Render an expression with this engine's node limit."""
        return to_string(expr, self.limit)

    def steps(self, expr: Expr, n: int) -> Iterator[DerivativeStep]:
        """
        Differentiate n times, yielding each round as it is computed.

        Raises:
            ValueError: If n is negative
        """
        if n < 0:
            raise ValueError(f"Number of rounds must be non-negative, got {n}")
        for index in range(1, n + 1):
            derivative = self(expr)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("round %d: %d -> %d nodes", index, count(expr), count(derivative))
            yield DerivativeStep(index, expr, derivative)
            expr = derivative

    def iterate(self, expr: Expr, n: int) -> Tuple[Expr, DerivativeTrace]:
        """
        Differentiate n times, recording every round.

        Returns:
            (final derivative, trace)
        """
        trace = DerivativeTrace(self.limit)
        trace.initial = expr
        for step in self.steps(expr, n):
            trace.add_step(step)
            expr = step.after
        trace.final = expr
        return expr, trace

    def nth(self, expr: Expr, n: int) -> Expr:
        """Return the n-th derivative without recording a trace."""
        return nest(n, self, expr)

    def __repr__(self) -> str:
        return f"DerivativeEngine(d/d{self.variable}, limit={self.limit})"
