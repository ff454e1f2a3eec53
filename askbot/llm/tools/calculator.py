"""
askbot/llm/tools/calculator.py

Safe arithmetic for the model. The expression is parsed with `ast` and only
numbers, arithmetic operators and a whitelist of `math` functions/constants
are evaluated; anything else (names, attributes, calls to unknown functions)
is rejected before evaluation.

Entry point: calculate(expression) -> ToolResult
"""

from __future__ import annotations

import ast
import math
import operator
from typing import Any, Callable

from ..types import ToolFailure, ToolResult, ToolSuccess

_BIN_OPS: dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: dict[type, Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "abs": abs,
    "acos": math.acos,
    "asin": math.asin,
    "atan": math.atan,
    "atan2": math.atan2,
    "ceil": math.ceil,
    "cos": math.cos,
    "exp": math.exp,
    "floor": math.floor,
    "log": math.log,
    "log10": math.log10,
    "log2": math.log2,
    "max": max,
    "min": min,
    "pow": math.pow,
    "round": round,
    "sin": math.sin,
    "sqrt": math.sqrt,
    "tan": math.tan,
    "trunc": math.trunc,
}

_CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "PI": math.pi,
    "e": math.e,
    "E": math.e,
}

# Integer results are capped at this many bits; exact big-int arithmetic past
# it can keep the worker thread busy indefinitely.
_MAX_EXPONENT = 1000
_MAX_RESULT_BITS = 4096


def _check_power(base: Any, exponent: Any) -> None:
    if abs(exponent) > _MAX_EXPONENT:
        raise ValueError("Exponent too large")
    if (
        isinstance(base, int)
        and isinstance(exponent, int)
        and exponent > 0
        and abs(base) > 1
        and exponent * math.log2(abs(base)) > _MAX_RESULT_BITS
    ):
        raise ValueError("Result too large")


def _check_product(left: Any, right: Any) -> None:
    if (
        isinstance(left, int)
        and isinstance(right, int)
        and abs(left).bit_length() + abs(right).bit_length() > _MAX_RESULT_BITS
    ):
        raise ValueError("Result too large")


def _is_valid_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large to convert to float
        return False


def _eval_node(node: ast.AST) -> Any:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ValueError(f"Unsupported literal: {node.value!r}")
        return node.value

    if isinstance(node, ast.BinOp):
        op = _BIN_OPS.get(type(node.op))
        if op is None:
            raise ValueError(f"Unsupported operator: {type(node.op).__name__}")
        left, right = _eval_node(node.left), _eval_node(node.right)
        if isinstance(node.op, ast.Pow):
            _check_power(left, right)
        elif isinstance(node.op, ast.Mult):
            _check_product(left, right)
        return op(left, right)

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise ValueError(f"Unsupported operator: {type(node.op).__name__}")
        return op(_eval_node(node.operand))

    if isinstance(node, ast.Name):
        if node.id in _CONSTANTS:
            return _CONSTANTS[node.id]
        raise ValueError(f"Unknown name: {node.id}")

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise ValueError("Only basic math functions are allowed")
        if node.keywords:
            raise ValueError("Keyword arguments are not allowed")
        return _FUNCTIONS[node.func.id](*(_eval_node(a) for a in node.args))

    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


def evaluate(expression: str) -> float | int:
    """Evaluate an arithmetic expression. Raises ValueError/ArithmeticError on bad input."""
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ValueError(f"Syntax error: {e.msg}") from e
    return _eval_node(tree)


def calculate(expression: str) -> ToolResult:
    try:
        value = evaluate(expression)
    except (ValueError, ArithmeticError, TypeError) as e:
        return ToolFailure(str(e) or type(e).__name__)

    if not _is_valid_number(value):
        return ToolFailure("Result is not a valid number")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return ToolSuccess({"expression": expression, "result": value})


# ── Schema ────────────────────────────────────────────────────────────────────

CALCULATE_SCHEMA = {
    "name": "calculate",
    "description": (
        "Perform a mathematical calculation. Supports basic arithmetic "
        "(+, -, *, /, //, %, **) and common math functions (sqrt, pow, sin, cos, "
        "tan, log, abs, ceil, floor, round)."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "expression": {
                "type": "string",
                "description": (
                    'Mathematical expression to evaluate (e.g., "2 + 2", "sqrt(16)", '
                    '"pow(2, 8)", "sin(3.14159)")'
                ),
            },
        },
        "required": ["expression"],
    },
}
