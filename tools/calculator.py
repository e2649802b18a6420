import ast
import operator

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field


class CalculatorInput(BaseModel):
    expression: str = Field(description="Arithmetic expression, e.g. '(2 + 3) * 4 / 5'.")


# Integer results stay below this size; exponents stay below MAX_EXPONENT.
MAX_RESULT_BITS = 4096
MAX_EXPONENT = 1000


def _power(base: float, exponent: float) -> float:
    if abs(exponent) > MAX_EXPONENT:
        raise ValueError(f"Exponent too large: {exponent}")
    if isinstance(base, int) and isinstance(exponent, int) and base.bit_length() * exponent > MAX_RESULT_BITS:
        raise ValueError("Result too large")
    return operator.pow(base, exponent)


_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _power,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}


def _checked(value: float) -> float:
    if isinstance(value, int) and value.bit_length() > MAX_RESULT_BITS:
        raise ValueError("Result too large")
    return value


def _evaluate(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return _checked(node.value)
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _checked(_BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right)))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


def calculate_(expression: str) -> str:
    """
    Evaluate an arithmetic expression without executing arbitrary code.
    Args:
        expression: numbers combined with + - * / // % ** and parentheses

    Returns:
        The result as text, or an error message the model can act on
    """
    try:
        tree = ast.parse(expression, mode="eval")
        result = _evaluate(tree)
    except (SyntaxError, ValueError, ZeroDivisionError, OverflowError) as e:
        return f"Error evaluating expression: {e}"
    if isinstance(result, float) and result.is_integer():
        result = int(result)
    return str(result)


calculator_tool = StructuredTool.from_function(
    func=calculate_,
    name="calculator",
    description="Evaluates an arithmetic expression and returns the result.",
    args_schema=CalculatorInput,
)
