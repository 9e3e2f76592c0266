"""
Monkey Abstract Syntax Tree
Node kinds, constructors and canonical source rendering
Nodes are plain dictionaries: {'type': KIND, 'value': payload, 'span': span}
"""

from typing import Any, Dict, List, Optional


# ============================================================================
# NODE KINDS
# ============================================================================

PROGRAM = "PROGRAM"
EXPRESSION_STATEMENT = "EXPRESSION_STATEMENT"
INTEGER_LITERAL = "INTEGER_LITERAL"
BOOLEAN = "BOOLEAN"
PREFIX_EXPRESSION = "PREFIX_EXPRESSION"
INFIX_EXPRESSION = "INFIX_EXPRESSION"
BLOCK_STATEMENT = "BLOCK_STATEMENT"
IF_EXPRESSION = "IF_EXPRESSION"
RETURN_STATEMENT = "RETURN_STATEMENT"
LET_STATEMENT = "LET_STATEMENT"
IDENTIFIER = "IDENTIFIER"
FUNCTION_LITERAL = "FUNCTION_LITERAL"
CALL_EXPRESSION = "CALL_EXPRESSION"

NODE_TYPES = (
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


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def make_ast_node(node_type: str, value: Any, span: Optional[Any] = None) -> Dict:
  """Create an AST node dictionary"""
  return {
      'type': node_type,
      'value': value,
      'span': span
  }


def make_program(statements: List[Dict], span=None) -> Dict:
  return make_ast_node(PROGRAM, {'statements': list(statements)}, span)


def make_expression_statement(expression: Dict, span=None) -> Dict:
  return make_ast_node(EXPRESSION_STATEMENT, {'expression': expression}, span)


def make_integer_literal(value: int, span=None) -> Dict:
  return make_ast_node(INTEGER_LITERAL, value, span)


def make_boolean(value: bool, span=None) -> Dict:
  return make_ast_node(BOOLEAN, bool(value), span)


def make_identifier(name: str, span=None) -> Dict:
  return make_ast_node(IDENTIFIER, name, span)


def make_prefix_expression(operator: str, right: Dict, span=None) -> Dict:
  return make_ast_node(PREFIX_EXPRESSION, {'operator': operator, 'right': right}, span)


def make_infix_expression(operator: str, left: Dict, right: Dict, span=None) -> Dict:
  return make_ast_node(INFIX_EXPRESSION, {
      'operator': operator,
      'left': left,
      'right': right
  }, span)


def make_block_statement(statements: List[Dict], span=None) -> Dict:
  return make_ast_node(BLOCK_STATEMENT, {'statements': list(statements)}, span)


def make_if_expression(condition: Dict, consequence: Dict,
                       alternative: Optional[Dict] = None, span=None) -> Dict:
  """Create an if expression; alternative is None when there is no else branch"""
  return make_ast_node(IF_EXPRESSION, {
      'condition': condition,
      'consequence': consequence,
      'alternative': alternative
  }, span)


def make_return_statement(return_value: Dict, span=None) -> Dict:
  return make_ast_node(RETURN_STATEMENT, {'return_value': return_value}, span)


def make_let_statement(name: str, value: Dict, span=None) -> Dict:
  return make_ast_node(LET_STATEMENT, {'name': name, 'value': value}, span)


def make_function_literal(parameters: List[str], body: Dict, span=None) -> Dict:
  return make_ast_node(FUNCTION_LITERAL, {
      'parameters': list(parameters),
      'body': body
  }, span)


def make_call_expression(function: Dict, arguments: List[Dict], span=None) -> Dict:
  return make_ast_node(CALL_EXPRESSION, {
      'function': function,
      'arguments': list(arguments)
  }, span)


# ============================================================================
# RENDERING
# ============================================================================

def node_to_string(node: Optional[Dict]) -> str:
  """Render a node back to its canonical, fully parenthesised source form"""
  if node is None:
    return ""

  node_type = node['type']
  value = node['value']

  if node_type in (PROGRAM, BLOCK_STATEMENT):
    return "".join(node_to_string(stmt) for stmt in value['statements'])
  elif node_type == EXPRESSION_STATEMENT:
    return node_to_string(value['expression'])
  elif node_type == INTEGER_LITERAL:
    return str(value)
  elif node_type == BOOLEAN:
    return "true" if value else "false"
  elif node_type == IDENTIFIER:
    return value
  elif node_type == PREFIX_EXPRESSION:
    return f"({value['operator']}{node_to_string(value['right'])})"
  elif node_type == INFIX_EXPRESSION:
    left = node_to_string(value['left'])
    right = node_to_string(value['right'])
    return f"({left} {value['operator']} {right})"
  elif node_type == IF_EXPRESSION:
    result = f"if{node_to_string(value['condition'])} {node_to_string(value['consequence'])}"
    if value['alternative'] is not None:
      result += f"else {node_to_string(value['alternative'])}"
    return result
  elif node_type == RETURN_STATEMENT:
    return f"return {node_to_string(value['return_value'])};"
  elif node_type == LET_STATEMENT:
    return f"let {value['name']} = {node_to_string(value['value'])};"
  elif node_type == FUNCTION_LITERAL:
    params = ", ".join(value['parameters'])
    return f"fn({params}) {node_to_string(value['body'])}"
  elif node_type == CALL_EXPRESSION:
    args = ", ".join(node_to_string(arg) for arg in value['arguments'])
    return f"{node_to_string(value['function'])}({args})"

  return f"<{node_type}>"


def pretty_print_ast(node: Dict, indent: int = 0) -> str:
  """Pretty print an AST node tree for debugging"""
  pad = "  " * indent
  node_type = node['type']
  value = node['value']

  if not isinstance(value, dict):
    return f"{pad}{node_type}({value!r})\n"

  result = f"{pad}{node_type}\n"
  for key, child in value.items():
    if isinstance(child, dict) and 'type' in child:
      result += f"{pad}  {key}:\n"
      result += pretty_print_ast(child, indent + 2)
    elif isinstance(child, list) and child and isinstance(child[0], dict):
      result += f"{pad}  {key}:\n"
      for item in child:
        result += pretty_print_ast(item, indent + 2)
    else:
      result += f"{pad}  {key}: {child!r}\n"
  return result
