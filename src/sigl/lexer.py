"""
Statement segmenter and tokenizer for SIGL.

SIGL source is line oriented:
- ``//`` starts a comment that runs to the end of the physical line
- every non-empty line (after comment removal and trimming) is one statement
- there are no block comments and no line continuations

``segment()`` splits source into ``Statement`` values that keep their
physical line number; ``Lexer`` turns one statement into tokens for the
clause parsers.
"""

from dataclasses import dataclass
from typing import List, Optional, Iterator
from .tokens import Token, TokenType, SourceLocation, SourceSpan
from .errors import error_unterminated_string


COMMENT_MARKER = "//"


@dataclass(frozen=True)
class Statement:
    """One trimmed, non-empty statement line."""
    line: int                       # 1-indexed physical line number
    text: str                       # Statement text, comment removed and trimmed
    column: int = 1                 # Column of the first character on the line
    filename: Optional[str] = None

    def span(self) -> SourceSpan:
        """Span covering the whole statement."""
        start = SourceLocation(self.line, self.column, 0, self.filename)
        end = SourceLocation(self.line, self.column + len(self.text), len(self.text), self.filename)
        return SourceSpan(start, end)


def segment(source: str, filename: Optional[str] = None) -> List[Statement]:
    """
    Split source into statements.

    Args:
        source: The SIGL source text
        filename: Optional filename for diagnostics

    Returns:
        Ordered list of non-empty statements with their 1-based line numbers
    """
    statements = []
    # only \n ends a physical line; splitlines() would also break on \f, \x85 ...
    for line_num, raw in enumerate(source.split("\n"), start=1):
        if raw.endswith("\r"):
            raw = raw[:-1]
        comment_index = raw.find(COMMENT_MARKER)
        if comment_index >= 0:
            raw = raw[:comment_index]
        text = raw.strip()
        if not text:
            continue
        column = len(raw) - len(raw.lstrip()) + 1
        statements.append(Statement(line_num, text, column, filename))
    return statements


class Lexer:
    """
    Tokenizer for a single SIGL statement.

    Usage:
        lexer = Lexer(statement)
        tokens = lexer.tokenize()

    Words are upper-cased into ``Token.value`` (the lexeme keeps the original
    spelling). Punctuation the grammar has no use for becomes a SYMBOL token
    rather than an error, so that a stray character only costs the clause it
    appears in.
    """

    def __init__(self, statement: Statement):
        self.statement = statement
        self.source = statement.text
        self.pos = 0

    def _location(self) -> SourceLocation:
        return SourceLocation(
            self.statement.line,
            self.statement.column + self.pos,
            self.pos,
            self.statement.filename,
        )

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        return ch

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _make_token(self, token_type: TokenType, value, start: SourceLocation) -> Token:
        lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, self._span(start))

    def _is_digit(self, ch: str) -> bool:
        # ASCII only; str.isdigit() also accepts superscripts and circled digits
        return "0" <= ch <= "9"

    def _is_word_char(self, ch: str) -> bool:
        return ch.isalnum() or ch == '_'

    def _scan_string(self) -> Token:
        """Scan a quoted string literal. No escape sequences."""
        start = self._location()
        quote = self._advance()
        chars = []
        while not self._is_at_end() and self._peek() != quote:
            chars.append(self._advance())

        if self._is_at_end():
            raise error_unterminated_string(self._span(start), self.statement.text)

        self._advance()  # closing quote
        return self._make_token(TokenType.STRING, ''.join(chars), start)

    def _scan_number(self) -> Token:
        """Scan a number, a WxH dimension, or a digit-led word such as 4K."""
        start = self._location()
        if self._peek() == '-':
            self._advance()

        while self._is_digit(self._peek()):
            self._advance()

        is_float = False
        if self._peek() == '.' and self._is_digit(self._peek(1)):
            is_float = True
            self._advance()
            while self._is_digit(self._peek()):
                self._advance()

        # 1920x1080
        if not is_float and self._peek() in 'xX' and self._is_digit(self._peek(1)):
            width = int(self.source[start.offset:self.pos])
            self._advance()
            height_start = self.pos
            while self._is_digit(self._peek()):
                self._advance()
            if not self._is_word_char(self._peek()):
                height = int(self.source[height_start:self.pos])
                return self._make_token(TokenType.DIMENSION, (width, height), start)

        # 4K, 3D, 2ND ...
        if self._is_word_char(self._peek()) and self.source[start.offset] != '-':
            while self._is_word_char(self._peek()):
                self._advance()
            lexeme = self.source[start.offset:self.pos]
            return self._make_token(TokenType.WORD, lexeme.upper(), start)

        lexeme = self.source[start.offset:self.pos]
        value = float(lexeme) if is_float else int(lexeme)
        return self._make_token(TokenType.NUMBER, value, start)

    def _scan_word(self) -> Token:
        start = self._location()
        while self._is_word_char(self._peek()):
            self._advance()
        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.WORD, lexeme.upper(), start)

    def _scan_hex_color(self) -> Token:
        """Scan #RGB / #RRGGBB; a lone '#' or other lengths become SYMBOL."""
        start = self._location()
        self._advance()  # '#'
        while self._peek() in '0123456789abcdefABCDEF':
            self._advance()
        digits = self.pos - start.offset - 1
        if digits in (3, 6) and not self._is_word_char(self._peek()):
            lexeme = self.source[start.offset:self.pos]
            return self._make_token(TokenType.HEX_COLOR, lexeme, start)
        while self._is_word_char(self._peek()):
            self._advance()
        return self._make_token(TokenType.SYMBOL, self.source[start.offset:self.pos], start)

    def _scan_token(self) -> Token:
        while self._peek() in ' \t':
            self._advance()

        start = self._location()
        if self._is_at_end():
            return Token(TokenType.EOF, None, "", SourceSpan(start, start))

        ch = self._peek()

        if ch in '"\'':
            return self._scan_string()

        if self._is_digit(ch) or (ch == '-' and self._is_digit(self._peek(1))):
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_word()

        if ch == '#':
            return self._scan_hex_color()

        self._advance()
        single_char_tokens = {
            '(': TokenType.LPAREN,
            ')': TokenType.RPAREN,
            ',': TokenType.COMMA,
            ':': TokenType.COLON,
        }
        return self._make_token(single_char_tokens.get(ch, TokenType.SYMBOL), ch, start)

    def tokenize(self) -> List[Token]:
        """Tokenize the statement, returning a list ending with EOF."""
        tokens = []
        while True:
            token = self._scan_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(statement) -> List[Token]:
    """
    Convenience function to tokenize one statement.

    Args:
        statement: A ``Statement`` or a bare statement string (line 1)

    Returns:
        List of tokens

    Raises:
        LexerError: If the statement contains an unterminated string
    """
    if isinstance(statement, str):
        statement = Statement(1, statement.strip())
    return Lexer(statement).tokenize()
