"""
Monkey Programming Language Parser
Tokenizer with source spans, and a pyparsing grammar producing AST nodes
"""

from typing import Dict, Iterator, List, Optional
from dataclasses import dataclass
import logging
import re

# Import pyparsing with error handling
try:
    from pyparsing import (
        Forward, Group, Keyword, Optional as PyParsingOptional, ParseBaseException,
        ParseFatalException, ParserElement, Regex, StringEnd, Suppress, ZeroOrMore,
        delimitedList, infixNotation, oneOf, opAssoc,
        col as pp_col, lineno as pp_lineno
    )
    # Enable packrat parsing for performance
    ParserElement.enablePackrat()
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from ast_nodes import (
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
from error_handling import MonkeyErrorHandler
from objects import INT64_MAX


logger = logging.getLogger(__name__)

# Lexical patterns shared by the tokenizer and the grammar
IDENT_PATTERN = r'[A-Za-z_][A-Za-z0-9_]*'
INT_PATTERN = r'[0-9]+'
COMMENT_PATTERN = r'//[^\n]*'

# Whitespace and comments before a construct's first token
LEADING_IGNORABLE = re.compile(r'(?:\s+|' + COMMENT_PATTERN + r')*')


# ============================================================================
# TOKEN TYPES
# ============================================================================

ILLEGAL = "ILLEGAL"
EOF = "EOF"

IDENT = "IDENT"
INT = "INT"

ASSIGN = "="
PLUS = "+"
MINUS = "-"
BANG = "!"
ASTERISK = "*"
SLASH = "/"
LT = "<"
GT = ">"
EQ = "=="
NOT_EQ = "!="

COMMA = ","
SEMICOLON = ";"
LPAREN = "("
RPAREN = ")"
LBRACE = "{"
RBRACE = "}"

FUNCTION = "FUNCTION"
LET = "LET"
TRUE = "TRUE"
FALSE = "FALSE"
IF = "IF"
ELSE = "ELSE"
RETURN = "RETURN"

KEYWORDS = {
    "fn": FUNCTION,
    "let": LET,
    "true": TRUE,
    "false": FALSE,
    "if": IF,
    "else": ELSE,
    "return": RETURN,
}


def lookup_ident(ident: str) -> str:
    """Map a word to its keyword token type, or IDENT"""
    return KEYWORDS.get(ident, IDENT)


@dataclass(frozen=True)
class SourceSpan:
    """Source location information"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


@dataclass(frozen=True)
class Token:
    """Monkey token with source information"""
    type: str
    literal: str
    span: SourceSpan

    def __str__(self) -> str:
        return f"{self.type}({self.literal})"


# ============================================================================
# TOKENIZER
# ============================================================================

class MonkeyTokenizer:
    """Monkey tokenizer; unknown characters become ILLEGAL tokens"""

    def __init__(self, filename: str = "<input>"):
        self.filename = filename
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token patterns for Monkey"""

        # Comments (// to end of line)
        self.comment_pattern = re.compile(COMMENT_PATTERN)

        self.number_pattern = re.compile(INT_PATTERN)

        # Identifiers may not start with a digit
        self.identifier_pattern = re.compile(IDENT_PATTERN)

        self.operators = {
            ASSIGN, PLUS, MINUS, BANG, ASTERISK, SLASH, LT, GT, EQ, NOT_EQ,
        }

        self.delimiters = {COMMA, SEMICOLON, LPAREN, RPAREN, LBRACE, RBRACE}

        # Create operator pattern (sorted by length to match longest first)
        operators_sorted = sorted(self.operators, key=len, reverse=True)
        operator_escaped = [re.escape(op) for op in operators_sorted]
        self.operator_pattern = re.compile('|'.join(operator_escaped))

    def iter_tokens(self, text: str) -> Iterator[Token]:
        """
        Lazily yield tokens for text, ending with a single EOF token.

        Every call starts a fresh scan, so the sequence can be restarted by
        calling iter_tokens again.
        """
        pos = 0
        line_num = 1
        line_start = 0

        while pos < len(text):
            char = text[pos]

            if char == '\n':
                pos += 1
                line_num += 1
                line_start = pos
                continue

            if char.isspace():
                pos += 1
                continue

            comment_match = self.comment_pattern.match(text, pos)
            if comment_match:
                pos = comment_match.end()
                continue

            token = self._match_token_at_position(text, pos, line_num, pos - line_start + 1)
            yield token
            pos += len(token.literal)

        col_num = pos - line_start + 1
        yield Token(EOF, "", SourceSpan(self.filename, line_num, col_num, line_num, col_num, ""))

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize Monkey source code"""
        return list(self.iter_tokens(text))

    def _span(self, line_num: int, col_num: int, value: str) -> SourceSpan:
        return SourceSpan(
            self.filename, line_num, col_num, line_num, col_num + len(value), value
        )

    def _match_token_at_position(self, text: str, pos: int, line_num: int, col_num: int) -> Token:
        """Match a token at a specific position using priority order"""

        # Priority 1: Integer literals
        num_match = self.number_pattern.match(text, pos)
        if num_match:
            value = num_match.group(0)
            return Token(INT, value, self._span(line_num, col_num, value))

        # Priority 2: Operators (longest match first, so == wins over =)
        op_match = self.operator_pattern.match(text, pos)
        if op_match:
            value = op_match.group(0)
            return Token(value, value, self._span(line_num, col_num, value))

        # Priority 3: Delimiters (single characters)
        if text[pos] in self.delimiters:
            value = text[pos]
            return Token(value, value, self._span(line_num, col_num, value))

        # Priority 4: Identifiers and keywords
        id_match = self.identifier_pattern.match(text, pos)
        if id_match:
            value = id_match.group(0)
            return Token(lookup_ident(value), value, self._span(line_num, col_num, value))

        value = text[pos]
        return Token(ILLEGAL, value, self._span(line_num, col_num, value))


# ============================================================================
# GRAMMAR
# ============================================================================

class MonkeyGrammar:
    """Monkey grammar definition using pyparsing"""

    def __init__(self, filename: str = "<input>"):
        self.filename = filename
        self._setup_grammar()

    def _span(self, s: str, loc: int) -> SourceSpan:
        loc = LEADING_IGNORABLE.match(s, loc).end()
        line_num = pp_lineno(loc, s)
        col_num = pp_col(loc, s)
        return SourceSpan(self.filename, line_num, col_num, line_num, col_num)

    def _make_integer(self, s: str, loc: int, tokens):
        literal = tokens[0]
        value = int(literal)
        if value > INT64_MAX:
            raise ParseFatalException(s, loc, f"could not parse {literal} as integer")
        return make_integer_literal(value, self._span(s, loc))

    def _make_prefix(self, s: str, loc: int, tokens):
        operator, right = tokens[0][0], tokens[0][1]
        return make_prefix_expression(operator, right, self._span(s, loc))

    def _make_infix(self, s: str, loc: int, tokens):
        """Fold a flat [operand, op, operand, op, ...] run left-associatively"""
        items = list(tokens[0])
        result = items[0]
        for i in range(1, len(items), 2):
            result = make_infix_expression(items[i], result, items[i + 1], self._span(s, loc))
        return result

    def _make_calls(self, s: str, loc: int, tokens):
        """callee(args)(args)... chains apply left to right"""
        result = tokens[0]
        for arguments in tokens[1:]:
            result = make_call_expression(result, list(arguments), self._span(s, loc))
        return result

    def _setup_grammar(self):
        """Setup the Monkey grammar"""

        # Forward declarations for recursive structures
        expression = Forward()
        statement = Forward()

        lparen, rparen, lbrace, rbrace, comma, semicolon = map(Suppress, "(){},;")
        assign = Suppress(Regex(r"=(?!=)"))

        # Keywords
        fn_kw = Keyword("fn")
        let_kw = Keyword("let")
        true_kw = Keyword("true")
        false_kw = Keyword("false")
        if_kw = Keyword("if")
        else_kw = Keyword("else")
        return_kw = Keyword("return")

        reserved = fn_kw | let_kw | true_kw | false_kw | if_kw | else_kw | return_kw

        identifier_base = Regex(IDENT_PATTERN)

        # Raw string for binding names and parameters
        binding_identifier = (~reserved + identifier_base.copy()).setName("identifier")
        value_identifier = (~reserved + identifier_base.copy()).setName("identifier").setParseAction(
            lambda s, loc, t: make_identifier(t[0], self._span(s, loc))
        )

        integer = Regex(INT_PATTERN).setName("integer").setParseAction(self._make_integer)

        boolean = (true_kw | false_kw).setParseAction(
            lambda s, loc, t: make_boolean(t[0] == "true", self._span(s, loc))
        )

        block = (lbrace + ZeroOrMore(statement) + rbrace).setParseAction(
            lambda s, loc, t: make_block_statement(list(t), self._span(s, loc))
        )

        if_expr = (
            Suppress(if_kw) + lparen + expression + rparen + block +
            PyParsingOptional(Suppress(else_kw) + block)
        ).setParseAction(
            lambda s, loc, t: make_if_expression(
                t[0], t[1], t[2] if len(t) > 2 else None, self._span(s, loc)
            )
        )

        parameters = Group(PyParsingOptional(delimitedList(binding_identifier)))
        function_literal = (
            Suppress(fn_kw) + lparen + parameters + rparen + block
        ).setParseAction(
            lambda s, loc, t: make_function_literal(list(t[0]), t[1], self._span(s, loc))
        )

        parenthesized = lparen + expression + rparen

        primary_expr = (
            integer |
            boolean |
            if_expr |
            function_literal |
            value_identifier |
            parenthesized
        )

        # Calls bind tighter than any prefix or infix operator
        call_arguments = Group(lparen + PyParsingOptional(delimitedList(expression)) + rparen)
        call_expr = (primary_expr + ZeroOrMore(call_arguments)).setParseAction(self._make_calls)

        # Lowest precedence last
        expression <<= infixNotation(call_expr, [
            (oneOf("! -"), 1, opAssoc.RIGHT, self._make_prefix),
            (oneOf("* /"), 2, opAssoc.LEFT, self._make_infix),
            (oneOf("+ -"), 2, opAssoc.LEFT, self._make_infix),
            (oneOf("< >"), 2, opAssoc.LEFT, self._make_infix),
            (oneOf("== !="), 2, opAssoc.LEFT, self._make_infix),
        ])

        let_statement = (
            Suppress(let_kw) + binding_identifier + assign + expression +
            PyParsingOptional(semicolon)
        ).setParseAction(
            lambda s, loc, t: make_let_statement(t[0], t[1], self._span(s, loc))
        )

        return_statement = (
            Suppress(return_kw) + expression + PyParsingOptional(semicolon)
        ).setParseAction(
            lambda s, loc, t: make_return_statement(t[0], self._span(s, loc))
        )

        expression_statement = (expression + PyParsingOptional(semicolon)).setParseAction(
            lambda s, loc, t: make_expression_statement(t[0], self._span(s, loc))
        )

        statement <<= let_statement | return_statement | expression_statement

        program = (ZeroOrMore(statement) + StringEnd()).setParseAction(
            lambda s, loc, t: make_program(list(t), self._span(s, loc))
        )
        program.ignore(Regex(COMMENT_PATTERN))

        # Store the main parsers
        self.program = program
        self.statement = statement
        self.expression = expression
        self.block = block
        self.primary_expr = primary_expr
        self.binding_identifier = binding_identifier

    def parse_program(self, text: str, filename: Optional[str] = None) -> Dict:
        """Parse a complete Monkey program into a PROGRAM node"""
        if filename is not None:
            self.filename = filename
        handler = MonkeyErrorHandler(text, self.filename)
        logger.debug("Parsing %s (%d characters)", self.filename, len(text))

        try:
            result = self.program.parseString(text, parseAll=True)
        except ParseBaseException as e:
            raise handler.enhance_parse_exception(e) from e

        program = result[0]
        logger.debug("Parsed %d statement(s)", len(program['value']['statements']))
        return program

    def parse_expression(self, text: str, filename: Optional[str] = None) -> Dict:
        """Parse a single Monkey expression"""
        if filename is not None:
            self.filename = filename
        handler = MonkeyErrorHandler(text, self.filename)

        try:
            result = self.expression.parseString(text, parseAll=True)
        except ParseBaseException as e:
            raise handler.enhance_parse_exception(e) from e

        return result[0]


# ============================================================================
# PARSER FACADE
# ============================================================================

class MonkeyParser:
    """Main Monkey parser combining tokenizer and grammar"""

    def __init__(self):
        self.grammar = MonkeyGrammar()

    def parse_file(self, filepath: str) -> Dict:
        """Parse a Monkey source file; OSError and UnicodeDecodeError propagate"""
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> Dict:
        """Parse Monkey source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> Dict:
        """Parse a single Monkey expression"""
        return self.grammar.parse_expression(text, filename)

    def tokenize(self, text: str, filename: str = "<input>") -> List[Token]:
        """Tokenize Monkey source code"""
        tokenizer = MonkeyTokenizer(filename)
        return tokenizer.tokenize(text)


# Factory functions for creating parsers
def create_parser() -> MonkeyParser:
    """Create a Monkey parser"""
    return MonkeyParser()

