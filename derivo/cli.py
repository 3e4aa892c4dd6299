#!/usr/bin/env python3
"""
DERIVO Command-Line Interface

Repeatedly differentiates x^x with respect to x and prints each round.

Usage:
    derivo N                        # N rounds of d/dx starting from x^x
    python -m derivo.cli N

Output (one line per round):
    D(x^x) = x^x*(x*x^-1 + ln(x))
    D(x^x*(x*x^-1 + ln(x))) = ...

Expressions with more than 100 nodes are printed as <<N>>.
"""

import argparse
import logging
import sys
from typing import Optional, TextIO

from .engine import DerivativeEngine, DEFAULT_VARIABLE
from .expr import DerivoError, Expr, Variable, count, power

logger = logging.getLogger(__name__)


def seed_expression(name: str = DEFAULT_VARIABLE) -> Expr:
    """The starting expression, name^name."""
    x = Variable(name)
    return power(x, x)


def rounds(value: str) -> int:
    """argparse type for a non-negative number of rounds."""
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of rounds: {value!r}")
    if n < 0:
        raise argparse.ArgumentTypeError(f"number of rounds must be non-negative: {n}")
    return n


def run(n: int, out: Optional[TextIO] = None) -> int:
    """
    Differentiate the seed expression n times, printing every round.

    Args:
        n: Number of rounds
        out: Stream for the result lines (default: stdout)

    Returns:
        Exit code (0 for success)
    """
    out = out or sys.stdout
    engine = DerivativeEngine()
    expr = seed_expression(engine.variable)

    try:
        for step in engine.steps(expr, n):
            print(step.format(engine.limit), file=out)
            expr = step.after
    except DerivoError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("final expression has %d nodes", count(expr))
    return 0


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="derivo",
        description="DERIVO - repeated symbolic differentiation of x^x",
        epilog="Example:\n"
               "  derivo 3        Print the first three derivatives of x^x\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "n",
        type=rounds,
        help="Number of differentiation rounds"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        stream=sys.stderr,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    sys.exit(run(args.n))


if __name__ == "__main__":
    main()
