"""
Monkey Interpreter
Tree-walking evaluator: (AST node, environment) -> runtime object
Runtime faults are Error objects that propagate as values, never exceptions
"""

from typing import Callable, Dict, List, Optional
import logging
import operator
import sys

from ast_nodes import (
  PROGRAM,
  EXPRESSION_STATEMENT,
  INTEGER_LITERAL,
  BOOLEAN,
  PREFIX_EXPRESSION,
  INFIX_EXPRESSION,
  BLOCK_STATEMENT,
  IF_EXPRESSION,
  RETURN_STATEMENT,
  LET_STATEMENT,
  IDENTIFIER,
  FUNCTION_LITERAL,
  CALL_EXPRESSION,
)
from environment import env_get, env_set, make_runtime_env, new_enclosed_env
from objects import (
  FALSE,
  FUNCTION_OBJ,
  INTEGER_OBJ,
  NULL,
  TRUE,
  is_control,
  is_error,
  is_truthy,
  make_function,
  make_integer,
  make_return_value,
  native_bool_to_boolean_object,
  type_of,
  unwrap_return_value,
)
from utilities import (
  arity_error,
  binary_arithmetic_op,
  binary_comparison_op,
  identifier_not_found_error,
  integer_divide,
  not_a_function_error,
  type_mismatch_error,
  unknown_infix_operator_error,
  unknown_node_error,
  unknown_prefix_operator_error,
)
from parsing import MonkeyParser, create_parser


logger = logging.getLogger(__name__)

# Each Monkey call costs roughly a dozen Python frames
RECURSION_LIMIT = 20000


# ============================================================================
# BUILT-IN OPERATIONS
# ============================================================================

INTEGER_INFIX_OPERATORS: Dict[str, Callable[[int, int], Dict]] = {
    '+': binary_arithmetic_op(operator.add),
    '-': binary_arithmetic_op(operator.sub),
    '*': binary_arithmetic_op(operator.mul),
    '/': integer_divide,
    '<': binary_comparison_op(operator.lt),
    '>': binary_comparison_op(operator.gt),
    '==': binary_comparison_op(operator.eq),
    '!=': binary_comparison_op(operator.ne),
}


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_ast(ast_node: Dict, env: Dict) -> Dict:
  """
  Evaluate an AST node in env and return a runtime object.

  Environments are mutated in place by let statements; the result may be an
  Error object (propagate it) or, below a function or program boundary, a
  ReturnValue wrapper.
  """
  node_type = ast_node.get('type') if isinstance(ast_node, dict) else None
  evaluator = NODE_EVALUATORS.get(node_type)

  if evaluator is None:
    logger.debug("Unknown node type: %s", node_type)
    return unknown_node_error(node_type)

  logger.debug("Evaluating: %s", node_type)
  return evaluator(ast_node, env)


def eval_statements(statements: List[Dict], env: Dict) -> Dict:
  """Evaluate statements in order, stopping at the first control object"""
  result = NULL

  for stmt in statements:
    result = eval_ast(stmt, env)
    if is_control(result):
      return result

  return result


def eval_program(ast_node: Dict, env: Dict) -> Dict:
  """A top-level return exits the program with its unwrapped value"""
  result = eval_statements(ast_node['value']['statements'], env)
  return unwrap_return_value(result)


def eval_block_statement(ast_node: Dict, env: Dict) -> Dict:
  """Like a program, but return wrappers keep unwinding"""
  return eval_statements(ast_node['value']['statements'], env)


def eval_expression_statement(ast_node: Dict, env: Dict) -> Dict:
  return eval_ast(ast_node['value']['expression'], env)


def eval_integer_literal(ast_node: Dict, env: Dict) -> Dict:
  return make_integer(ast_node['value'])


def eval_boolean(ast_node: Dict, env: Dict) -> Dict:
  return native_bool_to_boolean_object(ast_node['value'])


def eval_prefix_expression(ast_node: Dict, env: Dict) -> Dict:
  """Evaluate ! and unary - applied to an evaluated operand"""
  value = ast_node['value']
  right = eval_ast(value['right'], env)
  if is_control(right):
    return right

  op = value['operator']
  if op == '!':
    return FALSE if is_truthy(right) else TRUE
  elif op == '-':
    if type_of(right) != INTEGER_OBJ:
      return unknown_prefix_operator_error(op, right)
    return make_integer(-right['value'])

  return unknown_prefix_operator_error(op, right)


def eval_infix_expression(ast_node: Dict, env: Dict) -> Dict:
  """Evaluate left then right, then apply the operator table"""
  value = ast_node['value']

  left = eval_ast(value['left'], env)
  if is_control(left):
    return left

  right = eval_ast(value['right'], env)
  if is_control(right):
    return right

  return apply_infix_operator(value['operator'], left, right)


def apply_infix_operator(op: str, left: Dict, right: Dict) -> Dict:
  left_type = type_of(left)
  right_type = type_of(right)

  if left_type == INTEGER_OBJ and right_type == INTEGER_OBJ:
    impl = INTEGER_INFIX_OPERATORS.get(op)
    if impl is None:
      return unknown_infix_operator_error(op, left, right)
    return impl(left['value'], right['value'])
  elif left_type != right_type:
    return type_mismatch_error(op, left, right)

  return unknown_infix_operator_error(op, left, right)


def eval_if_expression(ast_node: Dict, env: Dict) -> Dict:
  value = ast_node['value']

  condition = eval_ast(value['condition'], env)
  if is_control(condition):
    return condition

  if is_truthy(condition):
    return eval_statements(value['consequence']['value']['statements'], env)
  elif value['alternative'] is not None:
    return eval_statements(value['alternative']['value']['statements'], env)
  return NULL


def eval_return_statement(ast_node: Dict, env: Dict) -> Dict:
  result = eval_ast(ast_node['value']['return_value'], env)
  # An inner return (e.g. `return if (x) { return 1; }`) is already unwinding
  if is_control(result):
    return result
  return make_return_value(result)


def eval_let_statement(ast_node: Dict, env: Dict) -> Dict:
  """Bind in the current environment; the statement's result is the bound value"""
  value = ast_node['value']
  result = eval_ast(value['value'], env)
  if is_control(result):
    return result
  return env_set(env, value['name'], result)


def eval_identifier(ast_node: Dict, env: Dict) -> Dict:
  """Evaluate identifier by looking up in environment"""
  name = ast_node['value']
  value, found = env_get(env, name)

  if not found:
    return identifier_not_found_error(name)

  return value


def eval_function_literal(ast_node: Dict, env: Dict) -> Dict:
  """Capture the defining environment; the body is not executed here"""
  value = ast_node['value']
  return make_function(value['parameters'], value['body'], env)


def eval_call_expression(ast_node: Dict, env: Dict) -> Dict:
  """Evaluate callee, then arguments left to right, then apply"""
  value = ast_node['value']

  function = eval_ast(value['function'], env)
  if is_control(function):
    return function

  if type_of(function) != FUNCTION_OBJ:
    return not_a_function_error(function)

  arguments = []
  for arg_node in value['arguments']:
    evaluated = eval_ast(arg_node, env)
    if is_control(evaluated):
      return evaluated
    arguments.append(evaluated)

  return apply_function(function, arguments)


def apply_function(function: Dict, arguments: List[Dict]) -> Dict:
  """Run a function body in a scope enclosing its captured environment"""
  if type_of(function) != FUNCTION_OBJ:
    return not_a_function_error(function)

  parameters = function['parameters']
  if len(arguments) != len(parameters):
    return arity_error(len(parameters), len(arguments))

  logger.debug("Applying fn(%s) to %d argument(s)", ", ".join(parameters), len(arguments))

  extended_env = extend_function_env(function, arguments)
  evaluated = eval_statements(function['body']['value']['statements'], extended_env)
  return unwrap_return_value(evaluated)


def extend_function_env(function: Dict, arguments: List[Dict]) -> Dict:
  # Enclose the closure environment, not the caller's: scoping is lexical
  env = new_enclosed_env(function['env'])
  for name, arg in zip(function['parameters'], arguments):
    env_set(env, name, arg)
  return env


NODE_EVALUATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    PROGRAM: eval_program,
    EXPRESSION_STATEMENT: eval_expression_statement,
    INTEGER_LITERAL: eval_integer_literal,
    BOOLEAN: eval_boolean,
    PREFIX_EXPRESSION: eval_prefix_expression,
    INFIX_EXPRESSION: eval_infix_expression,
    BLOCK_STATEMENT: eval_block_statement,
    IF_EXPRESSION: eval_if_expression,
    RETURN_STATEMENT: eval_return_statement,
    LET_STATEMENT: eval_let_statement,
    IDENTIFIER: eval_identifier,
    FUNCTION_LITERAL: eval_function_literal,
    CALL_EXPRESSION: eval_call_expression,
}


# ============================================================================
# SESSION FACADE
# ============================================================================

def ensure_recursion_limit(limit: int = RECURSION_LIMIT) -> None:
  """Raise the host recursion limit so ordinary recursive programs fit"""
  if sys.getrecursionlimit() < limit:
    logger.debug("Raising recursion limit to %d", limit)
    sys.setrecursionlimit(limit)


class MonkeyInterpreter:
  """Evaluates programs against one persistent top-level environment"""

  def __init__(self, env: Optional[Dict] = None, parser: Optional[MonkeyParser] = None):
    self.env = env if env is not None else make_runtime_env()
    self.parser = parser if parser is not None else create_parser()
    ensure_recursion_limit()

  def eval_program(self, program: Dict) -> Dict:
    result = eval_ast(program, self.env)
    if is_error(result):
      logger.debug("Program produced error: %s", result['message'])
    return result

  def run(self, source: str, filename: str = "<input>") -> Dict:
    """Parse source text and evaluate it in the session environment"""
    program = self.parser.parse_string(source, filename)
    return self.eval_program(program)

  def reset(self) -> None:
    self.env = make_runtime_env()


def create_interpreter(env: Optional[Dict] = None,
                       parser: Optional[MonkeyParser] = None) -> MonkeyInterpreter:
  """Factory function returning an interpreter session"""
  return MonkeyInterpreter(env, parser)


def evaluate(program: Dict, env: Optional[Dict] = None) -> Dict:
  """Evaluate a program in env, or in a fresh top-level environment"""
  ensure_recursion_limit()
  return eval_ast(program, env if env is not None else make_runtime_env())
