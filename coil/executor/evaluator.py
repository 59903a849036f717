"""
Expression evaluator for conditions and computed values.

Single source of truth for evaluating expression trees against rows.
Used by GET, UPDATE and DELETE to filter rows, and by UPDATE to compute
new field values.
"""

import math
import operator
from typing import Any, Dict

from ..parser.ast import (
    Expression, Literal, Identifier, UnaryOp, BinaryOp,
    UnaryOperator, BinaryOperator
)
from ..utils.exceptions import (
    FieldTypeError, UnknownFieldError, DivisionByZeroError, IntegerOverflowError,
    ExpressionTooDeepError, describe_value
)
from ..utils.validators import is_number, is_text, fits_int64


ORDERING = {
    BinaryOperator.LESS: operator.lt,
    BinaryOperator.LESS_EQUAL: operator.le,
    BinaryOperator.GREATER: operator.gt,
    BinaryOperator.GREATER_EQUAL: operator.ge,
}


def values_equal(left: Any, right: Any) -> bool:
    """
    Domain equality.

    None equals only None. Integer and Float compare as numbers, so
    `1 = 1.0` holds; this deliberately departs from strict per-kind
    equality, where Integer 1 and Float 1.0 differ. Values of any other
    pair of kinds are never equal.
    """
    if left is None or right is None:
        return left is None and right is None
    if is_number(left) and is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def compare_values(left: Any, op: BinaryOperator, right: Any) -> bool:
    """
    Domain ordering: number vs number or text vs text.

    Raises:
        FieldTypeError: For any other pairing
    """
    if (is_number(left) and is_number(right)) or (is_text(left) and is_text(right)):
        return ORDERING[op](left, right)
    raise FieldTypeError(
        f"Cannot compare {describe_value(left)} {op.value} {describe_value(right)}"
    )


class ExpressionEvaluator:
    """
    Evaluates expression trees against rows.

    This is the single implementation used everywhere expressions are
    evaluated, so filtering and UPDATE assignments share one set of
    value rules.
    """

    def evaluate(self, expression: Expression, row: Dict[str, Any]) -> Any:
        """
        Evaluate an expression against a row.

        Args:
            expression: AST expression node
            row: Row dict to evaluate against

        Returns:
            A field value (None, str, int, float) or a bool

        Raises:
            UnknownFieldError: If a referenced field doesn't exist
            FieldTypeError: If an operator gets operands of the wrong kind
            DivisionByZeroError: On `/` or `%` by zero
            IntegerOverflowError: If integer arithmetic leaves the 64-bit range
            ExpressionTooDeepError: If the tree is too deep to walk
        """
        try:
            return self._evaluate(expression, row)
        except RecursionError:
            raise ExpressionTooDeepError() from None

    def _evaluate(self, expression: Expression, row: Dict[str, Any]) -> Any:
        if isinstance(expression, Literal):
            return expression.value
        elif isinstance(expression, Identifier):
            if expression.name not in row:
                raise UnknownFieldError(expression.name)
            return row[expression.name]
        elif isinstance(expression, UnaryOp):
            return self._evaluate_unary(expression, row)
        elif isinstance(expression, BinaryOp):
            return self._evaluate_binary(expression, row)
        else:
            raise ValueError(f"Unknown expression type: {type(expression)}")

    def matches(self, condition: Expression, row: Dict[str, Any]) -> bool:
        """
        Evaluate a filter condition.

        Raises:
            FieldTypeError: If the condition doesn't produce a boolean
        """
        result = self.evaluate(condition, row)
        if not isinstance(result, bool):
            raise FieldTypeError(
                f"Condition must be boolean, got {describe_value(result)}"
            )
        return result

    def _evaluate_unary(self, expression: UnaryOp, row: Dict[str, Any]) -> Any:
        value = self._evaluate(expression.operand, row)

        if expression.op == UnaryOperator.NOT:
            return not self._require_bool(value, "NOT")

        if not is_number(value):
            raise FieldTypeError(
                f"Unary '{expression.op.value}' needs a number, got {describe_value(value)}"
            )
        if expression.op == UnaryOperator.NEGATE:
            if isinstance(value, int) and not fits_int64(-value):
                raise IntegerOverflowError(expression.op.value, value)
            return -value
        return value

    def _evaluate_binary(self, expression: BinaryOp, row: Dict[str, Any]) -> Any:
        op = expression.op

        if op.is_logical:
            return self._evaluate_logical(expression, row)

        left = self._evaluate(expression.left, row)
        right = self._evaluate(expression.right, row)

        if op == BinaryOperator.EQUAL:
            return values_equal(left, right)
        elif op == BinaryOperator.NOT_EQUAL:
            return not values_equal(left, right)
        elif op.is_ordering:
            return compare_values(left, op, right)
        else:
            return self._evaluate_arithmetic(left, op, right)

    def _evaluate_logical(self, expression: BinaryOp, row: Dict[str, Any]) -> bool:
        """AND / OR short-circuit; XOR always needs both sides."""
        op = expression.op
        left = self._require_bool(self._evaluate(expression.left, row), op.value)

        if op == BinaryOperator.AND and not left:
            return False
        if op == BinaryOperator.OR and left:
            return True

        right = self._require_bool(self._evaluate(expression.right, row), op.value)
        if op == BinaryOperator.XOR:
            return left != right
        return right

    def _evaluate_arithmetic(self, left: Any, op: BinaryOperator, right: Any) -> Any:
        if not (is_number(left) and is_number(right)):
            raise FieldTypeError(
                f"Cannot apply '{op.value}' to {describe_value(left)} and {describe_value(right)}"
            )

        if op == BinaryOperator.ADD:
            result = left + right
        elif op == BinaryOperator.SUBTRACT:
            result = left - right
        elif op == BinaryOperator.MULTIPLY:
            result = left * right
        elif op == BinaryOperator.DIVIDE:
            if right == 0:
                raise DivisionByZeroError(op.value)
            return left / right
        elif op == BinaryOperator.MODULO:
            if right == 0:
                raise DivisionByZeroError(op.value)
            return self._modulo(left, right)
        elif op == BinaryOperator.POWER:
            result = self._power(left, right)
        else:
            raise ValueError(f"Unknown arithmetic operator: {op}")

        if isinstance(result, int) and not fits_int64(result):
            raise IntegerOverflowError(op.value, left, right)
        return result

    def _modulo(self, left, right):
        """Truncated remainder: the result takes the sign of the dividend (-7 % 3 = -1)."""
        if isinstance(left, int) and isinstance(right, int):
            remainder = abs(left) % abs(right)
            return remainder if left >= 0 else -remainder
        return math.fmod(left, right)

    def _power(self, base, exponent):
        if isinstance(base, int) and isinstance(exponent, int) and exponent >= 0:
            # Bases other than 0, 1 and -1 overflow for any exponent above 63
            if abs(base) > 1 and exponent > 63:
                raise IntegerOverflowError(BinaryOperator.POWER.value, base, exponent)
            return base ** exponent
        if base == 0 and exponent < 0:
            raise DivisionByZeroError(BinaryOperator.POWER.value)
        try:
            result = math.pow(base, exponent)
        except (OverflowError, ValueError) as e:
            raise FieldTypeError(f"Cannot compute {base} ^ {exponent}: {e}")
        return result

    def _require_bool(self, value: Any, op_name: str) -> bool:
        if not isinstance(value, bool):
            raise FieldTypeError(
                f"'{op_name}' needs boolean operands, got {describe_value(value)}"
            )
        return value


# Convenience function for common use case
def evaluate_condition(condition: Expression, row: Dict[str, Any]) -> bool:
    """
    Evaluate a filter condition without creating an evaluator.

    Returns:
        True if the condition holds for the row
    """
    evaluator = ExpressionEvaluator()
    return evaluator.matches(condition, row)
