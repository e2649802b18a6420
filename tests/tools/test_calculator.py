"""Tests for the calculator tool."""

from tools.calculator import calculate_, calculator_tool


def test_calculate_respects_precedence_and_parentheses() -> None:
    assert calculate_("(2 + 3) * 4 / 5") == "4"
    assert calculate_("2 + 3 * 4") == "14"


def test_calculate_keeps_fractions() -> None:
    assert calculate_("7 / 2") == "3.5"


def test_calculate_supports_unary_and_power() -> None:
    assert calculate_("-2 ** 3") == "-8"


def test_calculate_rejects_names_and_calls() -> None:
    assert calculate_("__import__('os').getcwd()").startswith("Error evaluating expression:")


def test_calculate_reports_division_by_zero() -> None:
    assert calculate_("1 / 0").startswith("Error evaluating expression:")


def test_calculator_tool_invokes_with_structured_args() -> None:
    assert calculator_tool.invoke({"expression": "6 * 7"}) == "42"


def test_calculate_rejects_huge_exponents() -> None:
    assert calculate_("9**9**9") == "Error evaluating expression: Exponent too large: 387420489"


def test_calculate_rejects_huge_integer_results() -> None:
    assert calculate_("(10**900)**5") == "Error evaluating expression: Result too large"
    assert calculate_("2**1000 * 2**1000 * 2**1000 * 2**1000 * 2**1000") == "Error evaluating expression: Result too large"


def test_calculate_still_supports_moderate_powers() -> None:
    assert calculate_("2**100") == str(2**100)
    assert calculate_("2**-2") == "0.25"
