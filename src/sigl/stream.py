"""
Token cursor shared by the statement and clause parsers.
"""

from typing import Callable, List, Optional, Sequence

from .tokens import Token, TokenType, SourceSpan, SourceLocation, RELATION_PHRASES


class TokenStream:
    """
    Cursor over a token list.

    The list does not need to end with EOF; reading past the end yields a
    synthetic EOF token positioned after the last real token.
    """

    def __init__(self, tokens: Sequence[Token], source: str = ""):
        self.tokens = list(tokens)
        self.source = source
        self.pos = 0
        if self.tokens and self.tokens[-1].type == TokenType.EOF:
            self._eof = self.tokens.pop()
        else:
            end = self.tokens[-1].span.end if self.tokens else SourceLocation(0, 1, 0)
            self._eof = Token(TokenType.EOF, None, "", SourceSpan(end, end))

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        return self._peek(0)

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self._eof
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_word(self, *words: str) -> bool:
        return self._current().is_word(*words)

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        if self._current().type in token_types:
            return self._advance()
        return None

    def _match_word(self, *words: str) -> Optional[Token]:
        if self._check_word(*words):
            return self._advance()
        return None

    def _match_phrase(self, *words: str) -> bool:
        """Consume a sequence of words if all of them are next."""
        for i, word in enumerate(words):
            if not self._peek(i).is_word(word):
                return False
        self.pos += len(words)
        return True

    def _rest(self) -> List[Token]:
        """All remaining tokens (EOF excluded)."""
        return self.tokens[self.pos:]

    def _text(self, tokens: Sequence[Token]) -> str:
        """Original source text covered by ``tokens``."""
        if not tokens:
            return ""
        if not self.source:
            return " ".join(t.lexeme for t in tokens)
        return self.source[tokens[0].span.start.offset:tokens[-1].span.end.offset]

    def _span_of(self, tokens: Sequence[Token]) -> SourceSpan:
        if not tokens:
            return self._eof.span
        return SourceSpan(tokens[0].span.start, tokens[-1].span.end)


def split_top_level(tokens: Sequence[Token], is_separator: Callable[[Token], bool]) -> List[List[Token]]:
    """
    Split tokens at separators that are not inside parentheses.

    Separators are dropped; empty groups are kept so callers can see them.
    """
    groups: List[List[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.type == TokenType.LPAREN:
            depth += 1
        elif token.type == TokenType.RPAREN:
            depth = max(0, depth - 1)
        if depth == 0 and is_separator(token):
            groups.append([])
            continue
        groups[-1].append(token)
    return groups


def relation_at(tokens: Sequence[Token], index: int) -> Optional[tuple]:
    """Return the relation phrase starting at ``tokens[index]``, if any."""
    for phrase in RELATION_PHRASES:
        if index + len(phrase) > len(tokens):
            continue
        if all(tokens[index + i].is_word(w) for i, w in enumerate(phrase)):
            return phrase
    return None


def find_relation(tokens: Sequence[Token]) -> Optional[int]:
    """Index of the first top-level relation phrase in ``tokens``."""
    depth = 0
    for i, token in enumerate(tokens):
        if token.type == TokenType.LPAREN:
            depth += 1
        elif token.type == TokenType.RPAREN:
            depth = max(0, depth - 1)
        elif depth == 0 and relation_at(tokens, i) is not None:
            return i
    return None
