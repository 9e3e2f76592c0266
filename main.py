"""
Monkey Programming Language - Main Entry Point
Script runner, token/AST dumps and the interactive shell
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from ast_nodes import node_to_string, pretty_print_ast
from environment import env_user_bindings
from error_handling import MonkeyParseError
from interpreter import create_interpreter
from objects import NULL_OBJ, inspect, is_error, type_of
from parsing import EOF, create_parser


VERSION = "Monkey v0.1.0 (Tree-walking Interpreter)"
PROMPT = ">> "
HISTORY_FILE = "~/.monkey_history"
HISTORY_LENGTH = 1000


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='monkey',
      description='Monkey Programming Language - integers, booleans, closures',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.mky             # Run a Monkey script
  %(prog)s -i                     # Interactive mode
  %(prog)s --tokens script.mky    # Show the token stream
  %(prog)s --parse script.mky     # Parse and show the AST
  %(prog)s --debug script.mky     # Run with debug logging
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Monkey script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Tokenize file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show AST (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug logging for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def configure_logging(debug: bool = False) -> None:
  """Send debug tracing to stderr when --debug is given"""
  logging.basicConfig(
      level=logging.DEBUG if debug else logging.WARNING,
      format="%(levelname)s %(name)s: %(message)s"
  )


def read_script(script_path: str) -> str:
  """Read a script, exiting with a hint on I/O failures"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    print(f"  Hint: Check the file path and make sure the file exists")
    sys.exit(1)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print(f"  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)


def tokenize_file(script_path: str) -> None:
  """Tokenize a Monkey script file and show the tokens"""
  content = read_script(script_path)
  parser = create_parser()

  for token in parser.tokenize(content, script_path):
    print(f"{token.span.start_line}:{token.span.start_col}\t{token}")


def parse_file(script_path: str) -> None:
  """Parse a Monkey script file and show the AST"""
  content = read_script(script_path)
  parser = create_parser()

  try:
    program = parser.parse_string(content, script_path)
  except MonkeyParseError as e:
    print(e)
    sys.exit(1)

  statements = program['value']['statements']
  print(f"Parsed {len(statements)} top-level statements:")
  print("=" * 50)

  for i, stmt in enumerate(statements, 1):
    print(f"\nStatement {i}: {node_to_string(stmt)}")
    print(pretty_print_ast(stmt), end='')


def run_script_file(script_path: str, debug: bool = False) -> None:
  """Run a Monkey script file and print its final value"""
  content = read_script(script_path)
  interpreter = create_interpreter()

  try:
    result = interpreter.run(content, script_path)
  except MonkeyParseError as e:
    print(e)
    sys.exit(1)
  except Exception as e:
    print(f"Unexpected error while executing '{script_path}': {e}")
    if debug:
      import traceback
      traceback.print_exc()
    sys.exit(1)

  if is_error(result):
    print(f"Runtime error in '{script_path}': {result['message']}")
    sys.exit(1)

  if type_of(result) != NULL_OBJ:
    print(inspect(result))


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE or not sys.stdin.isatty():
    return

  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run, no history yet

  readline.set_history_length(HISTORY_LENGTH)

  completions = [
      # Keywords
      "fn", "let", "true", "false", "if", "else", "return",
      # REPL commands
      ":tokens", ":parse", ":env", ":reset", ":help", "exit"
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit

  def save_history():
    try:
      readline.write_history_file(history_file)
    except OSError:
      pass

  atexit.register(save_history)


def print_repl_help() -> None:
  print("REPL Commands:")
  print("  :tokens <src>     - Show the token stream")
  print("  :parse <src>      - Show the parsed AST")
  print("  :env              - Show current bindings")
  print("  :reset            - Discard all bindings")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  let x = 5;                        - Binding")
  print("  let add = fn(a, b) { a + b };     - Function")
  print("  add(1, 2)                         - Call")
  print("  if (x > 1) { true } else { false } - Conditional")


def run_interactive_mode(debug: bool = False) -> None:
  """Run Monkey in interactive mode with one persistent environment"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_parser()
  interpreter = create_interpreter(parser=parser)

  while True:
    try:
      line = input(PROMPT)
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    code = line.strip()

    if code == "exit":
      print("Goodbye!")
      break

    if not code:
      continue

    try:
      if code.startswith(":tokens"):
        for token in parser.tokenize(code[len(":tokens"):].strip()):
          if token.type == EOF:
            break
          print(token)
        continue

      if code.startswith(":parse"):
        try:
          program = parser.parse_string(code[len(":parse"):].strip())
        except MonkeyParseError as e:
          print(e)
          continue
        print(node_to_string(program))
        print(pretty_print_ast(program), end='')
        continue

      if code == ":env":
        bindings = env_user_bindings(interpreter.env)
        if not bindings:
          print("  (no bindings)")
        for name, value in bindings:
          val_str = inspect(value).replace('\n', ' ')
          if len(val_str) > 60:
            val_str = val_str[:57] + "..."
          print(f"  {name} = {val_str}")
        continue

      if code == ":reset":
        interpreter.reset()
        print("Environment cleared")
        continue

      if code == ":help":
        print_repl_help()
        continue

      try:
        program = parser.parse_string(line)
      except MonkeyParseError as e:
        print(e)
        continue

      result = interpreter.eval_program(program)
      print(inspect(result))

    except Exception as e:
      print(f"Unexpected error: {e}")
      if debug:
        import traceback
        traceback.print_exc()
      print("  Hint: If this keeps happening, try ':reset' or use --debug for more details")


def show_language_info() -> None:
  """Show Monkey language information"""
  print("Monkey Programming Language")
  print("=" * 50)
  print("A small expression language with:")
  print("• 64-bit integers and booleans")
  print("• let bindings and if/else expressions")
  print("• First-class functions and closures")
  print("• Early return")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Monkey"""
  argv = sys.argv[1:] if argv is None else argv
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  configure_logging(args.debug)

  if not argv:
    # No arguments - show info and start interactive mode
    show_language_info()
    run_interactive_mode(debug=False)
    return

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)

    if args.tokens:
      tokenize_file(args.script)
    elif args.parse:
      parse_file(args.script)
    else:
      run_script_file(args.script, debug=args.debug)

  elif args.interactive:
    run_interactive_mode(debug=args.debug)

  else:
    arg_parser.print_help()
    print()
    show_language_info()


if __name__ == "__main__":
  main()
