#!/usr/bin/env python3
"""
DERIVO Feature Demonstration

This script demonstrates the major features of the DERIVO library.
"""

from derivo import (
    E, DerivativeEngine, DomainError,
    add, multiply, power, ln, pown,
    differentiate, to_string, format_sexpr, count,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_smart_constructors():
    """Demonstrate simplification while building."""
    section("Smart Constructors")

    x, y = E.vars("x", "y")
    examples = [
        ("0 + x", add(E.const(0), x)),
        ("x + 2 + 3", add(add(x, E.const(2)), E.const(3))),
        ("0 * (x + y)", multiply(E.const(0), add(x, y))),
        ("2 * (3 * y)", multiply(E.const(2), multiply(E.const(3), y))),
        ("2 ^ 10", power(E.const(2), E.const(10))),
        ("x ^ 1", power(x, E.const(1))),
        ("ln(1)", ln(E.const(1))),
    ]

    for desc, expr in examples:
        print(f"  {desc:<14} => {to_string(expr)}")


def demo_differentiation():
    """Demonstrate single derivatives."""
    section("Differentiation")

    examples = [
        "(* x x)",
        "(^ x 3)",
        "(^ 2 x)",
        "(ln (* 2 x))",
        "(^ x x)",
    ]

    for expr_str in examples:
        expr = E(expr_str)
        print(f"  d/dx {to_string(expr):<10} = {to_string(differentiate(expr, 'x'))}")


def demo_repeated():
    """Demonstrate repeated differentiation with the size guard."""
    section("Repeated Differentiation")

    engine = DerivativeEngine("x")
    _, trace = engine.iterate(E("(^ x x)"), 4)

    print(trace.format())
    print()
    print(f"  node counts: {trace.format('counts')}")
    print(f"  {trace.summary()}")


def demo_sexpr():
    """Demonstrate s-expression output."""
    section("S-expressions")

    d1 = differentiate(E("(^ x x)"), "x")
    print(f"  infix: {to_string(d1)}")
    print(f"  sexpr: {format_sexpr(d1)}")
    print(f"  nodes: {count(d1)}")


def demo_errors():
    """Demonstrate literal arithmetic errors."""
    section("Errors")

    try:
        pown(0, -1)
    except DomainError as e:
        print(f"  pown(0, -1): {e}")

    try:
        power(E.const(2), E.const(64))
    except OverflowError as e:
        print(f"  2^64: {e}")

    print(f"  2^-1 stays symbolic: {to_string(power(E.const(2), E.const(-1)))}")
    print(f"  0^-1 folds to zero: {to_string(power(E.const(0), E.const(-1)))}")


if __name__ == "__main__":
    demo_smart_constructors()
    demo_differentiation()
    demo_repeated()
    demo_sexpr()
    demo_errors()
