"""
Utilities module for the Monkey interpreter
Error message builders and integer operator factories shared by the evaluator
"""

from typing import Callable, Dict, Optional

from objects import (
  NULL,
  make_error,
  make_integer,
  native_bool_to_boolean_object,
  type_of,
)


# ==================== ERROR MESSAGE BUILDERS ====================

def unknown_prefix_operator_error(operator: str, right: Dict) -> Dict:
  """
  Generate an unknown prefix operator error

  Examples:
    unknown_prefix_operator_error("-", TRUE) -> ERROR: unknown operator: -BOOLEAN
  """
  return make_error(f"unknown operator: {operator}{type_of(right)}")


def unknown_infix_operator_error(operator: str, left: Dict, right: Dict) -> Dict:
  return make_error(
    f"unknown operator: {type_of(left)} {operator} {type_of(right)}"
  )


def type_mismatch_error(operator: str, left: Dict, right: Dict) -> Dict:
  """
  Generate a type mismatch error for operands of different runtime types

  Examples:
    type_mismatch_error("+", five, TRUE) -> ERROR: type mismatch: INTEGER + BOOLEAN
  """
  return make_error(
    f"type mismatch: {type_of(left)} {operator} {type_of(right)}"
  )


def identifier_not_found_error(name: str) -> Dict:
  return make_error(f"identifier not found: {name}")


def not_a_function_error(value: Dict) -> Dict:
  return make_error(f"not a function: {type_of(value)}")


def arity_error(expected: int, got: int) -> Dict:
  """
  Generate an arity mismatch error

  Args:
    expected: Number of declared parameters
    got: Number of supplied arguments
  """
  return make_error(f"wrong number of arguments: want={expected}, got={got}")


def unknown_node_error(node_type: Optional[str]) -> Dict:
  return make_error(f"unknown node type: {node_type}")


# ==================== INTEGER ARITHMETIC ====================

def truncating_div(x: int, y: int) -> int:
  """Integer division truncated toward zero (Python's // floors)"""
  quotient = abs(x) // abs(y)
  return quotient if (x < 0) == (y < 0) else -quotient


# ==================== BINARY OPERATION FACTORIES ====================

def binary_arithmetic_op(op: Callable[[int, int], int]) -> Callable[[int, int], Dict]:
  """
  Factory for integer arithmetic operations

  Args:
    op: Python operator function (e.g., operator.add)

  Returns:
    Function taking two raw ints and returning an Integer object

  Examples:
    add = binary_arithmetic_op(operator.add)
    add(1, 2) -> {'type': 'INTEGER', 'value': 3}
  """
  def arithmetic(x: int, y: int) -> Dict:
    return make_integer(op(x, y))

  return arithmetic


def binary_comparison_op(op: Callable[[int, int], bool]) -> Callable[[int, int], Dict]:
  """
  Factory for integer comparison operations returning the Boolean singletons

  Examples:
    lt = binary_comparison_op(operator.lt)
    lt(1, 2) -> TRUE
  """
  def comparison(x: int, y: int) -> Dict:
    return native_bool_to_boolean_object(op(x, y))

  return comparison


def integer_divide(x: int, y: int) -> Dict:
  """Division by zero yields NULL rather than an error"""
  if y == 0:
    return NULL
  return make_integer(truncating_div(x, y))
