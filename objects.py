"""
Monkey Object Model
Runtime values as tagged dictionaries; booleans and null are shared constants
"""

from typing import Any, Dict, List

from ast_nodes import node_to_string


# ============================================================================
# TYPE TAGS
# ============================================================================

INTEGER_OBJ = "INTEGER"
BOOLEAN_OBJ = "BOOLEAN"
NULL_OBJ = "NULL"
FUNCTION_OBJ = "FUNCTION"
RETURN_VALUE_OBJ = "RETURN_VALUE"
ERROR_OBJ = "ERROR"

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def wrap_int64(value: int) -> int:
  """Reduce a Python int to the signed 64-bit range (two's complement)"""
  return ((value - INT64_MIN) % (1 << 64)) + INT64_MIN


# ============================================================================
# SINGLETONS
# ============================================================================

TRUE = {'type': BOOLEAN_OBJ, 'value': True}
FALSE = {'type': BOOLEAN_OBJ, 'value': False}
NULL = {'type': NULL_OBJ}


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def make_integer(value: int) -> Dict:
  """Create an Integer object, wrapped into the 64-bit range"""
  return {
      'type': INTEGER_OBJ,
      'value': wrap_int64(value)
  }


def native_bool_to_boolean_object(value: bool) -> Dict:
  """The only way to obtain a Boolean: returns TRUE or FALSE"""
  return TRUE if value else FALSE


def make_function(parameters: List[str], body: Dict, env: Dict) -> Dict:
  """Create a function value closing over env (shared, not copied)"""
  return {
      'type': FUNCTION_OBJ,
      'parameters': list(parameters),
      'body': body,
      'env': env
  }


def make_return_value(value: Dict) -> Dict:
  return {
      'type': RETURN_VALUE_OBJ,
      'value': value
  }


def make_error(message: str) -> Dict:
  return {
      'type': ERROR_OBJ,
      'message': message
  }


# ============================================================================
# PREDICATES
# ============================================================================

def type_of(obj: Any) -> str:
  """Return the type tag of a runtime object"""
  if isinstance(obj, dict):
    return obj.get('type', NULL_OBJ)
  return NULL_OBJ


def is_error(obj: Any) -> bool:
  return type_of(obj) == ERROR_OBJ


def is_control(obj: Any) -> bool:
  """Errors and return wrappers unwind evaluation instead of being used as values"""
  return type_of(obj) in (ERROR_OBJ, RETURN_VALUE_OBJ)


def is_truthy(obj: Dict) -> bool:
  """
  Only FALSE and NULL are falsy.

  Decided on the type tag and value rather than object identity, so a
  Boolean dictionary built outside native_bool_to_boolean_object still
  behaves correctly.
  """
  obj_type = type_of(obj)
  if obj_type == BOOLEAN_OBJ:
    return bool(obj['value'])
  if obj_type == NULL_OBJ:
    return False
  return True


def unwrap_return_value(obj: Dict) -> Dict:
  """Strip a ReturnValue wrapper at a function or program boundary"""
  if type_of(obj) == RETURN_VALUE_OBJ:
    return obj['value']
  return obj


# ============================================================================
# DISPLAY
# ============================================================================

def inspect(obj: Dict) -> str:
  """Render a runtime object the way the REPL shows it"""
  obj_type = type_of(obj)

  if obj_type == INTEGER_OBJ:
    return str(obj['value'])
  elif obj_type == BOOLEAN_OBJ:
    return "true" if obj['value'] else "false"
  elif obj_type == NULL_OBJ:
    return "null"
  elif obj_type == RETURN_VALUE_OBJ:
    return inspect(obj['value'])
  elif obj_type == ERROR_OBJ:
    return f"ERROR: {obj['message']}"
  elif obj_type == FUNCTION_OBJ:
    params = ", ".join(obj['parameters'])
    return f"fn({params}) {{\n{node_to_string(obj['body'])}\n}}"

  return f"<{obj_type}>"
