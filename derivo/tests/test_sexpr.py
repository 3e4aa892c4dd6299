"""Tests for the s-expression reader/writer and the expression builder E."""

import pytest
from derivo import (
    E, Literal, Variable, Sum, Product, Power, Log,
    parse_sexpr, format_sexpr, differentiate, power,
)

x = Variable("x")
y = Variable("y")


class TestParse:
    """Tests for parse_sexpr / E()."""

    def test_parse_atoms(self):
        """Integers become literals, other atoms variables."""
        assert E("x") == Variable("x")
        assert E("42") == Literal(42)
        assert E("-1") == Literal(-1)

    def test_parse_compound(self):
        """Compound forms go through the smart constructors."""
        assert E("(^ x x)") == Power(x, x)
        assert E("(+ x 1)") == Sum(Literal(1), x)
        assert E("(ln x)") == Log(x)

    def test_parse_nested(self):
        assert E("(* x (+ x y))") == Product(x, Sum(x, y))
        assert E("(^ (+ x 1) (ln y))") == Power(Sum(Literal(1), x), Log(y))

    def test_parse_simplifies(self):
        """Identities fold while reading."""
        assert E("(* x 0)") == Literal(0)
        assert E("(ln 1)") == Literal(0)
        assert E("(^ x 1)") == x
        assert E("(^ 2 10)") == Literal(1024)

    def test_parse_nary(self):
        """+ and * fold left over any number of arguments."""
        assert E("(+ 1 2 x)") == Sum(Literal(3), x)
        assert E("(* 2 x 3)") == Product(Literal(6), x)
        assert E("(+ x)") == x
        assert E("(+)") == Literal(0)
        assert E("(*)") == Literal(1)

    def test_parse_whitespace(self):
        assert E("  (+\n  x\t y )  ") == Sum(x, y)

    def test_parse_errors(self):
        """Malformed text raises ValueError."""
        for text in ["", "   ", "(+ x 1", "(+ x 1) y", "x y", "x)",
                     "()", "(foo x)", "(^ x)", "(ln x y)", "((+) x)"]:
            with pytest.raises(ValueError):
                parse_sexpr(text)

    def test_error_names_operator(self):
        with pytest.raises(ValueError, match=r"\^"):
            parse_sexpr("(^ x)")


class TestFormat:
    """Tests for format_sexpr."""

    def test_format(self):
        assert format_sexpr(Power(x, x)) == "(^ x x)"
        assert format_sexpr(Sum(Literal(3), x)) == "(+ 3 x)"
        assert format_sexpr(Product(x, Log(y))) == "(* x (ln y))"
        assert format_sexpr(Literal(-1)) == "-1"

    def test_round_trip_derivative(self):
        """A derivative written out and read back is unchanged."""
        d1 = differentiate(power(x, x), "x")
        assert format_sexpr(d1) == "(* (^ x x) (+ (* x (^ x -1)) (ln x)))"
        assert parse_sexpr(format_sexpr(d1)) == d1

    def test_not_an_expression(self):
        with pytest.raises(TypeError):
            format_sexpr(["+", "x", 1])


class TestExprBuilder:
    """Tests for E expression builder."""

    def test_op(self):
        """E.op() builds through the smart constructors."""
        assert E.op("^", x, x) == Power(x, x)
        assert E.op("+", x, E.const(0)) is x
        assert E.op("*", E.const(2), E.const(3)) == Literal(6)

    def test_op_unknown(self):
        with pytest.raises(ValueError):
            E.op("-", x, y)

    def test_var(self):
        assert E.var("x") == x

    def test_vars(self):
        """E.vars() creates multiple variables for unpacking."""
        a, b = E.vars("a", "b")
        assert a == Variable("a")
        assert b == Variable("b")

    def test_const(self):
        assert E.const(5) == Literal(5)
        assert E.const(-1) == Literal(-1)

    def test_equivalence_parse_and_op(self):
        """E() and E.op() produce equivalent results."""
        parsed = E("(* x (+ 2 y))")
        built = E.op("*", E.var("x"), E.op("+", E.const(2), E.var("y")))
        assert parsed == built

    def test_repr(self):
        assert repr(E) == "E (expression builder)"
