"""Calculator tool — safe arithmetic evaluation over a restricted AST."""

from __future__ import annotations

import ast
import math
import operator
from typing import Any, Callable, ClassVar

from reloop.tool.base import BaseTool, ToolParameter
from reloop.tool.value import Arguments

_BINARY_OPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.FloorDiv: operator.floordiv,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS: dict[str, Callable[[float], float]] = {
    "sqrt": math.sqrt,
    "abs": abs,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "log": math.log10,
    "ln": math.log,
}

_CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}

# Guard against 9**9**9 style expressions.
MAX_EXPONENT = 1000
# Bound on the decimal digits of any intermediate power or product.
MAX_RESULT_DIGITS = 10000


def evaluate(expression: str) -> float | int:
    """Evaluate an arithmetic expression.

    ``^`` is treated as exponentiation. Only numbers, the four basic
    operators plus ``%``, ``//`` and ``**``, parentheses, a small set of
    math functions and the constants ``pi`` / ``e`` are accepted.

    Raises:
        ValueError: the expression is malformed or uses anything else.
    """
    cleaned = expression.strip().lower().replace("^", "**")
    if not cleaned:
        raise ValueError("Empty expression")
    try:
        tree = ast.parse(cleaned, mode="eval")
    except SyntaxError as e:
        raise ValueError(f"Invalid expression: {expression}") from e
    return _eval_node(tree.body)


def _eval_node(node: ast.AST) -> Any:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ValueError(f"Unsupported literal: {node.value!r}")
        return node.value

    if isinstance(node, ast.Name):
        if node.id in _CONSTANTS:
            return _CONSTANTS[node.id]
        raise ValueError(f"Unknown name: {node.id}")

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise ValueError(f"Unsupported operator: {type(node.op).__name__}")
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow):
            if abs(right) > MAX_EXPONENT:
                raise ValueError("Exponent too large")
            if right > 0 and right * _digits(left) > MAX_RESULT_DIGITS:
                raise ValueError("Result too large")
        elif isinstance(node.op, ast.Mult):
            if _digits(left) + _digits(right) > MAX_RESULT_DIGITS:
                raise ValueError("Result too large")
        try:
            return op(left, right)
        except ZeroDivisionError as e:
            raise ValueError("Division by zero") from e

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise ValueError(f"Unsupported operator: {type(node.op).__name__}")
        return op(_eval_node(node.operand))

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise ValueError("Unsupported function call")
        if len(node.args) != 1 or node.keywords:
            raise ValueError(f"{node.func.id}() takes exactly one argument")
        return _FUNCTIONS[node.func.id](_eval_node(node.args[0]))

    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


def _digits(value: Any) -> float:
    return math.log10(max(abs(value), 2))


def format_number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


class CalculatorTool(BaseTool):
    """Evaluate mathematical expressions."""

    name: ClassVar[str] = "calculator"
    description: ClassVar[str] = (
        "Evaluate a mathematical expression. Supports +, -, *, /, %, "
        "powers (^ or **), parentheses and the functions sqrt, abs, sin, "
        "cos, tan, log (base 10) and ln."
    )
    parameters: ClassVar[tuple[ToolParameter, ...]] = (
        ToolParameter(
            name="expression",
            type="string",
            description="The expression to evaluate, e.g. '2 + 2', 'sqrt(16)', 'sin(pi/2)'",
        ),
    )

    async def execute(self, arguments: Arguments) -> str:
        expression = arguments["expression"]
        if not isinstance(expression, str):
            raise ValueError("'expression' must be a string")
        try:
            result = evaluate(expression)
        except (ArithmeticError, TypeError) as e:
            # math domain errors, overflow
            raise ValueError(f"Calculation failed: {e}") from e
        if isinstance(result, complex):
            raise ValueError("Result is not a real number")
        return f"Result: {format_number(result)}"
