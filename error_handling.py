"""
Enhanced error handling for the Monkey parser with detailed error messages
Pure functional style - no classes except for the exception types
"""

from typing import List, Optional, Dict
from pyparsing import ParseBaseException
import re


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None,
    filename: str = "<input>"
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or [],
        'filename': filename
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    error_msg = f"Parse error in {error['filename']} at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def extract_expected(exc: ParseBaseException) -> List[str]:
    """Extract expected tokens from exception"""
    expected = []

    # pyparsing doesn't always have an .expected attribute
    msg = str(exc)
    if "Expected" in msg:
        expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(|$)", msg)
        if expected_match:
            expected.append(expected_match.group(1))

    return expected if expected else ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if 0 < line_num <= len(lines):
        error_line = lines[line_num - 1]
        if col_num <= len(error_line):
            start = max(0, col_num - 1)
            end = min(len(error_line), col_num + 10)
            got_text = error_line[start:end].strip()
            if got_text:
                return f"'{got_text}'"
        return "end of line"
    return "end of input"


def generate_suggestions(message: str, got: str, expected: List[str]) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []

    if "could not parse" in message and "as integer" in message:
        suggestions.append("Integer literals must fit in a signed 64-bit integer")

    if got.startswith("'=") and not got.startswith("'=="):
        suggestions.append("Bindings are written 'let name = value;'")

    if "{" in got or "}" in got:
        suggestions.append("Check that every '{' has a matching '}'")

    if "(" in got or ")" in got:
        suggestions.append("Check that every '(' has a matching ')'")

    if re.search(r"\bif\b", got):
        suggestions.append("Conditions need parentheses: if (x > 1) { ... }")

    if re.search(r"\bfn\b", got):
        suggestions.append("Functions are written fn(a, b) { a + b }")

    if got == "end of input":
        suggestions.append("The program ends in the middle of an expression or block")

    return suggestions


def enhance_parse_exception_dict(exc: ParseBaseException, source_text: str,
                                 filename: str = "<input>") -> Dict:
    """Convert pyparsing exception to enhanced Monkey error dict"""
    line_num = exc.lineno
    col_num = exc.column
    message = exc.msg if getattr(exc, 'msg', None) else str(exc)

    context = get_context_lines(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)
    suggestions = generate_suggestions(message, got, expected)

    return make_parse_error(
        message=message,
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions,
        filename=filename
    )


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class MonkeyParseError(Exception):
    """Syntax error raised by the parser front end"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None,
                 filename: str = "<input>"):
        self.message = message
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        self.filename = filename
        super().__init__(message)

    @classmethod
    def from_dict(cls, error: Dict) -> "MonkeyParseError":
        return cls(**error)

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions,
            self.filename
        )
        return format_parse_error(error_dict)


class MonkeyErrorHandler:
    """Binds source text so pyparsing exceptions can be enhanced"""
    def __init__(self, source_text: str, filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def enhance_parse_exception(self, exc: ParseBaseException) -> MonkeyParseError:
        """Convert pyparsing exception to enhanced Monkey error"""
        return MonkeyParseError.from_dict(
            enhance_parse_exception_dict(exc, self.source_text, self.filename)
        )


def create_enhanced_parser_with_errors(parser_func, source_text: str, filename: str = "<input>"):
    """Wrapper to add enhanced error handling to any parser"""
    handler = MonkeyErrorHandler(source_text, filename)

    def enhanced_parse(*args, **kwargs):
        try:
            return parser_func(*args, **kwargs)
        except ParseBaseException as e:
            raise handler.enhance_parse_exception(e) from e

    return enhanced_parse
