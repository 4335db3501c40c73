"""
Token types for the SIGL statement tokenizer.

SIGL is line oriented: every statement is one physical line, so tokens never
span lines and there are no NEWLINE/INDENT tokens. Keywords are
context-sensitive (``SHORT`` is a height in one clause and a hairstyle in
another), so the tokenizer emits plain WORD tokens and the clause parsers
decide what a word means.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types produced by the statement tokenizer."""

    WORD = auto()               # DRAW, MAN, TOP_LEFT, 4K
    NUMBER = auto()             # 30, -50, 2.5
    DIMENSION = auto()          # 1920x1080
    STRING = auto()             # "Alice", 'x'
    HEX_COLOR = auto()          # #FF0000, #abc

    LPAREN = auto()             # (
    RPAREN = auto()             # )
    COMMA = auto()              # ,
    COLON = auto()              # :
    SYMBOL = auto()             # any other punctuation

    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed physical line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset within the statement
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the tokenizer."""
    type: TokenType
    value: Any              # WORD: upper-cased text, NUMBER: int/float, DIMENSION: (w, h)
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def is_word(self, *words: str) -> bool:
        """Check if this is a WORD token matching any of ``words``."""
        return self.type == TokenType.WORD and self.value in words

    def __str__(self) -> str:
        if self.type in (TokenType.WORD, TokenType.NUMBER, TokenType.STRING,
                         TokenType.HEX_COLOR, TokenType.DIMENSION):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Leading words of each statement form
STATEMENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "LOAD": ("LOAD", "EXTENSION"),
    "ADD": ("ADD", "ENVIRONMENT"),
    "DRAW": ("DRAW",),
    "UPDATE": ("UPDATE",),
    "EXPORT": ("EXPORT",),
}

# Connective splitting attribute clauses
AND = "AND"

# Word sequences that open a position clause, longest first
RELATION_PHRASES: tuple[tuple[str, ...], ...] = (
    ("IN", "FRONT", "OF"),
    ("NEXT", "TO"),
    ("LEFT", "OF"),
    ("RIGHT", "OF"),
    ("BEHIND",),
    ("ABOVE",),
    ("BELOW",),
    ("NEAR",),
    ("AT",),
)


def describe(token: Token) -> str:
    """Human-readable description of a token for error messages."""
    if token.type == TokenType.EOF:
        return "end of statement"
    return f"'{token.lexeme}'"
