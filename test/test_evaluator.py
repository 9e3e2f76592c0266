"""
Evaluator tests for the Monkey interpreter
Tests arithmetic, truthiness, closures, early return and runtime errors
"""

import logging
import sys

import pytest
from ast_nodes import (
  NODE_TYPES,
  make_block_statement,
  make_boolean,
  make_call_expression,
  make_expression_statement,
  make_function_literal,
  make_identifier,
  make_if_expression,
  make_infix_expression,
  make_integer_literal,
  make_let_statement,
  make_prefix_expression,
  make_program,
  make_return_statement,
)
from environment import env_get, make_runtime_env
from interpreter import RECURSION_LIMIT, NODE_EVALUATORS, create_interpreter, eval_ast, evaluate
from objects import (
  ERROR_OBJ,
  FALSE,
  FUNCTION_OBJ,
  INT64_MAX,
  INT64_MIN,
  INTEGER_OBJ,
  NULL,
  TRUE,
  inspect,
  type_of,
)


def assert_integer(obj, expected):
  assert type_of(obj) == INTEGER_OBJ, inspect(obj)
  assert obj['value'] == expected


def assert_error(obj, message):
  assert type_of(obj) == ERROR_OBJ, inspect(obj)
  assert obj['message'] == message


class TestArithmetic:
  """Test integer expressions"""

  @pytest.mark.parametrize("code,expected", [
    ("5", 5),
    ("10", 10),
    ("-5", -5),
    ("-10", -10),
    ("5 + 5 + 5 + 5 - 10", 10),
    ("2 * 2 * 2 * 2 * 2", 32),
    ("-50 + 100 + -50", 0),
    ("5 * 2 + 10", 20),
    ("5 + 2 * 10", 25),
    ("20 + 2 * -10", 0),
    ("50 / 2 * 2 + 10", 60),
    ("2 * (5 + 10)", 30),
    ("3 * 3 * 3 + 10", 37),
    ("3 * (3 * 3) + 10", 37),
    ("(5 + 10 * 2 + 15 / 3) * 2 + -10", 50),
  ])
  def test_integer_expressions(self, run, code, expected):
    assert_integer(run(code), expected)

  @pytest.mark.parametrize("code,expected", [
    ("7 / 2", 3),
    ("-7 / 2", -3),
    ("7 / -2", -3),
    ("-7 / -2", 3),
    ("0 / 5", 0),
  ])
  def test_division_truncates_toward_zero(self, run, code, expected):
    assert_integer(run(code), expected)

  def test_division_by_zero_is_null(self, run):
    assert run("5 / 0") is NULL
    assert run("let z = 0; 10 / z") is NULL

  def test_null_from_division_is_not_an_integer(self, run):
    assert_error(run("5 / 0 + 1"), "type mismatch: NULL + INTEGER")

  @pytest.mark.parametrize("code,expected", [
    ("9223372036854775807 + 1", INT64_MIN),
    ("-9223372036854775807 - 2", INT64_MAX),
    ("9223372036854775807 * 2", -2),
    ("-(-9223372036854775807 - 1)", INT64_MIN),
    ("(-9223372036854775807 - 1) / -1", INT64_MIN),
  ])
  def test_overflow_wraps(self, run, code, expected):
    assert_integer(run(code), expected)


class TestBooleans:
  """Test comparisons, bang and truthiness"""

  @pytest.mark.parametrize("code,expected", [
    ("true", TRUE),
    ("false", FALSE),
    ("1 < 2", TRUE),
    ("1 > 2", FALSE),
    ("1 < 1", FALSE),
    ("1 > 1", FALSE),
    ("1 == 1", TRUE),
    ("1 != 1", FALSE),
    ("1 == 2", FALSE),
    ("1 != 2", TRUE),
  ])
  def test_boolean_expressions(self, run, code, expected):
    assert run(code) is expected

  @pytest.mark.parametrize("code,expected", [
    ("!true", FALSE),
    ("!false", TRUE),
    ("!5", FALSE),
    ("!0", FALSE),
    ("!!true", TRUE),
    ("!!false", FALSE),
    ("!!5", TRUE),
    ("!(if (false) { 1 })", TRUE),
    ("!fn() { 1 }", FALSE),
  ])
  def test_bang_operator(self, run, code, expected):
    assert run(code) is expected

  @pytest.mark.parametrize("code", [
    "true == true",
    "false != true",
    "(1 < 2) == true",
  ])
  def test_booleans_have_no_infix_operators(self, run, code):
    result = run(code)
    assert type_of(result) == ERROR_OBJ
    assert result['message'].startswith("unknown operator: BOOLEAN ")


class TestConditionals:
  """Test if/else expressions"""

  @pytest.mark.parametrize("code,expected", [
    ("if (true) { 10 }", 10),
    ("if (1) { 10 }", 10),
    ("if (0) { 10 }", 10),
    ("if (1 < 2) { 10 }", 10),
    ("if (1 > 2) { 10 } else { 20 }", 20),
    ("if (1 < 2) { 10 } else { 20 }", 10),
  ])
  def test_taken_branches(self, run, code, expected):
    assert_integer(run(code), expected)

  @pytest.mark.parametrize("code", [
    "if (false) { 10 }",
    "if (1 > 2) { 10 }",
    "if (5 / 0) { 10 }",
    "if (true) { }",
  ])
  def test_missing_branch_is_null(self, run, code):
    assert run(code) is NULL

  def test_error_in_condition_short_circuits(self, run):
    assert_error(run("if (foo) { 1 } else { 2 }"), "identifier not found: foo")


class TestReturn:
  """Test early return unwinding"""

  @pytest.mark.parametrize("code,expected", [
    ("return 10;", 10),
    ("return 10; 9;", 10),
    ("return 2 * 5; 9;", 10),
    ("9; return 2 * 5; 9;", 10),
    ("if (10 > 1) { if (10 > 1) { return 10; } return 1; }", 10),
    ("let f = fn(x) { return x; x + 10; }; f(10);", 10),
    ("let f = fn(x) { let result = x + 10; return result; return 10; }; f(10);", 20),
  ])
  def test_return_statements(self, run, code, expected):
    assert_integer(run(code), expected)

  def test_return_stops_at_function_boundary(self, run):
    assert_integer(run("let f = fn() { return 1; }; f() + 1; 7"), 7)

  def test_nested_return_is_not_rewrapped(self, run):
    assert_integer(run("let f = fn() { return if (true) { return 1; }; 2 }; f()"), 1)

  def test_return_in_let_unwinds_without_binding(self, interpreter):
    assert_integer(interpreter.run("let x = if (true) { return 1; }; 99"), 1)
    assert not env_get(interpreter.env, "x")[1]
    assert_error(interpreter.run("x"), "identifier not found: x")


class TestBindings:
  """Test let statements and identifier lookup"""

  @pytest.mark.parametrize("code,expected", [
    ("let a = 5; a;", 5),
    ("let a = 5 * 5; a;", 25),
    ("let a = 5; let b = a; b;", 5),
    ("let a = 5; let b = a; let c = a + b + 5; c;", 15),
  ])
  def test_let_statements(self, run, code, expected):
    assert_integer(run(code), expected)

  def test_let_result_is_bound_value(self, run):
    assert_integer(run("let a = 5;"), 5)

  def test_empty_program_is_null(self, run):
    assert run("") is NULL
    assert run("// nothing here") is NULL

  def test_session_keeps_bindings(self, interpreter):
    assert_integer(interpreter.run("let x = 5; x"), 5)
    assert_integer(interpreter.run("x"), 5)

  def test_reset_discards_bindings(self, interpreter):
    interpreter.run("let x = 5;")
    interpreter.reset()
    assert_error(interpreter.run("x"), "identifier not found: x")

  def test_shadowing_inside_function(self, interpreter):
    assert_integer(interpreter.run("let x = 5; let f = fn() { let x = 10; x }; f();"), 10)
    assert_integer(interpreter.run("x"), 5)

  def test_parameter_shadows_outer_name(self, run):
    assert_integer(run("let x = 1; let f = fn(x) { x * 10 }; f(5) + x"), 51)


class TestFunctions:
  """Test function values, calls and closures"""

  def test_function_object(self, run):
    fn = run("fn(x) { x + 2; };")
    assert type_of(fn) == FUNCTION_OBJ
    assert fn['parameters'] == ["x"]
    assert inspect(fn) == "fn(x) {\n(x + 2)\n}"

  @pytest.mark.parametrize("code,expected", [
    ("let identity = fn(x) { x; }; identity(5);", 5),
    ("let identity = fn(x) { return x; }; identity(5);", 5),
    ("let double = fn(x) { x * 2; }; double(5);", 10),
    ("let add = fn(x, y) { x + y; }; add(5, 5);", 10),
    ("let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));", 20),
    ("fn(x) { x; }(5)", 5),
    ("let twice = fn(f, x) { f(f(x)) }; twice(fn(n) { n + 3 }, 1)", 7),
  ])
  def test_function_application(self, run, code, expected):
    assert_integer(run(code), expected)

  def test_empty_body_is_null(self, run):
    assert run("fn() { }()") is NULL

  def test_closures(self, interpreter):
    setup = "let newAdder = fn(x) { fn(y) { x + y } }; let addTwo = newAdder(2); addTwo(3);"
    assert_integer(interpreter.run(setup), 5)
    assert_integer(interpreter.run("let addTwo = newAdder(3); addTwo(3);"), 6)

  def test_closures_keep_their_own_capture(self, run):
    code = """
    let newAdder = fn(x) { fn(y) { x + y } };
    let addTwo = newAdder(2);
    let addTen = newAdder(10);
    addTwo(1) * 100 + addTen(1)
    """
    assert_integer(run(code), 311)

  def test_scoping_is_lexical(self, run):
    code = """
    let x = 1;
    let getX = fn() { x };
    let caller = fn() { let x = 2; getX() };
    caller()
    """
    assert_integer(run(code), 1)

  def test_closure_sees_later_outer_bindings(self, run):
    assert_integer(run("let f = fn() { later }; let later = 4; f()"), 4)

  def test_recursion(self, run):
    code = """
    let fact = fn(n) { if (n < 2) { 1 } else { n * fact(n - 1) } };
    fact(10)
    """
    assert_integer(run(code), 3628800)

  def test_mutual_recursion(self, run):
    code = """
    let isEven = fn(n) { if (n == 0) { true } else { isOdd(n - 1) } };
    let isOdd = fn(n) { if (n == 0) { false } else { isEven(n - 1) } };
    isEven(10)
    """
    assert run(code) is TRUE

  @pytest.mark.parametrize("depth", [60, 100, 500])
  def test_deep_recursion(self, run, depth):
    code = "let count = fn(n) { if (n == 0) { 0 } else { 1 + count(n - 1) } }; count(%d)" % depth
    assert_integer(run(code), depth)

  def test_session_raises_recursion_limit(self, interpreter):
    assert sys.getrecursionlimit() >= RECURSION_LIMIT


class TestErrors:
  """Test runtime error values and their propagation"""

  @pytest.mark.parametrize("code,message", [
    ("5 + true;", "type mismatch: INTEGER + BOOLEAN"),
    ("5 + true; 5;", "type mismatch: INTEGER + BOOLEAN"),
    ("-true", "unknown operator: -BOOLEAN"),
    ("-fn() { 1 }", "unknown operator: -FUNCTION"),
    ("true + false;", "unknown operator: BOOLEAN + BOOLEAN"),
    ("5; true + false; 5", "unknown operator: BOOLEAN + BOOLEAN"),
    ("if (10 > 1) { true + false; }", "unknown operator: BOOLEAN + BOOLEAN"),
    ("if (10 > 1) { if (10 > 1) { return true + false; } return 1; }",
     "unknown operator: BOOLEAN + BOOLEAN"),
    ("foobar", "identifier not found: foobar"),
    ("fn(x) { x } + 1", "type mismatch: FUNCTION + INTEGER"),
    ("let f = fn(x) { x }; f(true + 1)", "type mismatch: BOOLEAN + INTEGER"),
    ("5(1)", "not a function: INTEGER"),
    ("true()", "not a function: BOOLEAN"),
    ("let f = fn(x) { x }; f(1, 2)", "wrong number of arguments: want=1, got=2"),
    ("let f = fn(x, y) { x }; f()", "wrong number of arguments: want=2, got=0"),
  ])
  def test_error_messages(self, run, code, message):
    assert_error(run(code), message)

  def test_callee_is_evaluated_first(self, run):
    assert_error(run("foo(bar)"), "identifier not found: foo")

  def test_not_a_function_before_arguments(self, run):
    assert_error(run("5(foo)"), "not a function: INTEGER")

  def test_arguments_evaluated_before_arity_check(self, run):
    assert_error(run("let f = fn(x) { x }; f(1, foo)"), "identifier not found: foo")

  @pytest.mark.parametrize("code", [
    "foo + bar",
    "-foo + bar",
    "foo + (bar * 2)",
    "if (foo) { bar } else { bar }",
    "let f = fn(a, b) { a }; f(foo, bar)",
    "let f = fn(a) { a }; f(foo, bar)",
  ])
  def test_leftmost_error_wins(self, run, code):
    assert_error(run(code), "identifier not found: foo")

  def test_leftmost_error_wins_across_kinds(self, run):
    assert_error(run("(true + false) * foo"), "unknown operator: BOOLEAN + BOOLEAN")
    assert_error(run("foo * (true + false)"), "identifier not found: foo")

  def test_error_stops_let_binding(self, interpreter):
    assert_error(interpreter.run("let x = foo;"), "identifier not found: foo")
    assert not env_get(interpreter.env, "x")[1]

  def test_error_inside_function_propagates(self, run):
    code = "let f = fn() { missing; 1 }; let r = f(); 2"
    assert_error(run(code), "identifier not found: missing")

  def test_error_inspect(self, run):
    assert inspect(run("foobar")) == "ERROR: identifier not found: foobar"


class TestDispatch:
  """Test evaluation of hand-built trees and the dispatch table"""

  def test_every_node_type_has_an_evaluator(self):
    assert set(NODE_EVALUATORS) == set(NODE_TYPES)

  def test_unknown_node_type(self):
    result = eval_ast({'type': 'WHILE_LOOP', 'value': None, 'span': None}, make_runtime_env())
    assert_error(result, "unknown node type: WHILE_LOOP")

  def test_non_node_input(self):
    assert_error(eval_ast(None, make_runtime_env()), "unknown node type: None")

  def test_hand_built_program(self):
    # let add = fn(a, b) { return a + b; }; if (!false) { add(2, -3) } else { 0 }
    add_fn = make_function_literal(["a", "b"], make_block_statement([
      make_return_statement(
        make_infix_expression("+", make_identifier("a"), make_identifier("b"))
      )
    ]))
    program = make_program([
      make_let_statement("add", add_fn),
      make_expression_statement(make_if_expression(
        make_prefix_expression("!", make_boolean(False)),
        make_block_statement([make_expression_statement(make_call_expression(
          make_identifier("add"),
          [make_integer_literal(2), make_prefix_expression("-", make_integer_literal(3))]
        ))]),
        make_block_statement([make_expression_statement(make_integer_literal(0))])
      )),
    ])

    assert_integer(evaluate(program), -1)

  def test_evaluate_uses_given_environment(self):
    env = make_runtime_env()
    evaluate(make_program([make_let_statement("x", make_integer_literal(3))]), env)
    value, found = env_get(env, "x")
    assert found
    assert_integer(value, 3)

  def test_interpreter_with_existing_environment(self):
    env = make_runtime_env()
    first = create_interpreter(env)
    second = create_interpreter(env)
    first.run("let shared = 8;")
    assert_integer(second.run("shared"), 8)

  def test_debug_logging(self, run, caplog):
    caplog.set_level(logging.DEBUG, logger="interpreter")
    run("let f = fn(x) { x }; f(1)")
    messages = [record.getMessage() for record in caplog.records if record.name == "interpreter"]
    assert "Evaluating: PROGRAM" in messages
    assert "Applying fn(x) to 1 argument(s)" in messages
