"""
Position clause parser.

A position clause starts at the first top-level relation phrase of a DRAW
statement:

    AT LEFT | AT 120, 80 | AT (120, 80) | AT POSITION 120, 80 | AT GRID 1, 2
    NEXT TO MAN | BEHIND HOUSE WITH DISTANCE 40 | IN FRONT OF CAR ...

``AT`` clauses produce absolute coordinates. Every other relation records the
target text and a provisional offset; the resolver replaces it with a
coordinate relative to the target once the whole scene is known.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import Diagnostic, error_invalid_position, warning_unknown_position
from .scene import CANVAS_CENTER, Position, Relation
from .stream import TokenStream, relation_at
from .tokens import Token, TokenType


# x, y, z
NAMED_POSITIONS: Dict[str, Tuple[float, float, float]] = {
    "LEFT": (150, 300, 0),
    "RIGHT": (650, 300, 0),
    "CENTER": (400, 300, 0),
    "TOP": (400, 100, 0),
    "BOTTOM": (400, 500, 0),
    "TOP_LEFT": (150, 100, 0),
    "TOP_RIGHT": (650, 100, 0),
    "BOTTOM_LEFT": (150, 500, 0),
    "BOTTOM_RIGHT": (650, 500, 0),
    "FAR_LEFT": (50, 300, 0),
    "FAR_RIGHT": (750, 300, 0),
    "CENTER_LEFT": (200, 300, 0),
    "CENTER_RIGHT": (600, 300, 0),
    "UPPER": (400, 150, 0),
    "MIDDLE": (400, 300, 0),
    "LOWER": (400, 450, 0),
    "FOREGROUND": (400, 300, 100),
    "BACKGROUND": (400, 300, -100),
}

GRID_CELL = 150
GRID_MARGIN = 100

RELATIONS: Dict[Tuple[str, ...], Relation] = {
    ("NEXT", "TO"): Relation.NEXT_TO,
    ("BEHIND",): Relation.BEHIND,
    ("IN", "FRONT", "OF"): Relation.IN_FRONT_OF,
    ("LEFT", "OF"): Relation.LEFT_OF,
    ("RIGHT", "OF"): Relation.RIGHT_OF,
    ("ABOVE",): Relation.ABOVE,
    ("BELOW",): Relation.BELOW,
    ("NEAR",): Relation.NEAR,
}


def provisional_offset(relation: Relation, distance: Optional[float]) -> Tuple[float, float, float]:
    """Coordinate stored for a relative position until it is resolved."""
    if relation in (Relation.NEXT_TO, Relation.RIGHT_OF):
        return (distance or 80, 0, 0)
    if relation == Relation.LEFT_OF:
        return (-(distance or 80), 0, 0)
    if relation == Relation.ABOVE:
        return (0, -(distance or 80), 0)
    if relation == Relation.BELOW:
        return (0, distance or 80, 0)
    if relation == Relation.NEAR:
        return (distance or 50, distance or 50, 0)
    if relation == Relation.BEHIND:
        return (0, 50, -30)
    return (0, -50, 30)


@dataclass
class PositionClause:
    """Outcome of parsing a position clause."""
    position: Position
    warning: Optional[Diagnostic] = None


class PositionParser(TokenStream):
    """
    Parses the tokens of one position clause.

    Args:
        tokens: Tokens starting at the relation phrase
        source: Text of the statement the tokens came from
    """

    def parse(self) -> PositionClause:
        """
        Parse the clause.

        Raises:
            ParseError: If the relation has no target (E107)
        """
        phrase = relation_at(self.tokens, self.pos)
        if phrase is None:
            raise error_invalid_position(
                f"expected a position, found '{self._current().lexeme}'",
                self._current().span, self.source,
            )
        relation_tokens = self.tokens[self.pos:self.pos + len(phrase)]
        self.pos += len(phrase)

        if phrase == ("AT",):
            return self._parse_at(relation_tokens)
        return self._parse_relative(RELATIONS[phrase], relation_tokens)

    # =========================================================================
    # AT
    # =========================================================================

    def _parse_at(self, at_tokens: List[Token]) -> PositionClause:
        target = self._rest()
        if not target:
            raise error_invalid_position(
                "expected a position after AT", self._span_of(at_tokens), self.source,
            )

        if len(target) == 1 and target[0].type == TokenType.WORD and target[0].value in NAMED_POSITIONS:
            x, y, z = NAMED_POSITIONS[target[0].value]
            return PositionClause(Position(x, y, z))

        if self._match_word("GRID"):
            pair = self._parse_pair()
            if pair is not None:
                row, col = pair
                return PositionClause(Position(col * GRID_CELL + GRID_MARGIN,
                                               row * GRID_CELL + GRID_MARGIN, 0))
            self.pos -= 1

        self._match_word("POSITION")
        pair = self._parse_pair()
        if pair is not None:
            return PositionClause(Position(pair[0], pair[1], 0))

        warning = warning_unknown_position(self._text(target), self._span_of(target), self.source)
        return PositionClause(Position(*CANVAS_CENTER, 0), warning)

    def _parse_pair(self) -> Optional[Tuple[float, float]]:
        """``x, y`` or ``(x, y)`` filling the rest of the clause."""
        start = self.pos
        parenthesized = self._match(TokenType.LPAREN) is not None
        first = self._match(TokenType.NUMBER)
        comma = self._match(TokenType.COMMA)
        second = self._match(TokenType.NUMBER)
        closed = not parenthesized or self._match(TokenType.RPAREN) is not None
        if first and comma and second and closed and self._is_at_end():
            return first.value, second.value
        self.pos = start
        return None

    # =========================================================================
    # Relative
    # =========================================================================

    def _parse_relative(self, relation: Relation, relation_tokens: List[Token]) -> PositionClause:
        target = self._rest()
        distance = None
        if (len(target) >= 3 and target[-3].is_word("WITH") and target[-2].is_word("DISTANCE")
                and target[-1].type == TokenType.NUMBER):
            distance = target[-1].value
            target = target[:-3]

        if not target:
            raise error_invalid_position(
                f"expected a target after {' '.join(t.value for t in relation_tokens)}",
                self._span_of(relation_tokens), self.source,
            )

        x, y, z = provisional_offset(relation, distance)
        position = Position(x, y, z, relative=relation,
                            relative_to=self._text(target), distance=distance)
        return PositionClause(position)


def parse_position(tokens: Sequence[Token], source: str = "") -> PositionClause:
    """
    Convenience function to parse a position clause.

    Args:
        tokens: Tokens starting at the relation phrase
        source: Statement text the tokens were produced from
    """
    return PositionParser(tokens, source).parse()
