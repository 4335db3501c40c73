"""
Attribute clause parser.

The attribute section of DRAW and UPDATE is a list of clauses joined by
``AND``. Each clause is tried against a fixed list of rules in priority
order; the first rule that matches wins and a clause no rule matches is
dropped without a diagnostic. Rules look at the leading tokens of a clause
only, so trailing words are ignored.

Example:
    DRAW WOMAN WITH AGE 30 AND RED DRESS AND HAIR(COLOR: BLONDE, STYLE: LONG)
"""

from typing import Callable, Dict, List, Optional, Sequence

from .colors import is_color, normalize_color
from .stream import TokenStream, split_top_level
from .tokens import Token, TokenType, AND
from .values import AttributeValue, Record, Scalar, record_in


CLOTHING_ITEMS = ("SHIRT", "DRESS", "PANTS", "SKIRT")
APPEARANCE_ITEMS = ("HAIR", "EYES")

EMOTIONS = ("HAPPY", "SAD", "ANGRY", "SURPRISED", "NEUTRAL", "EXCITED")

OUTFITS = (
    "BUSINESS_SUIT",
    "CASUAL_WEAR",
    "FORMAL_ATTIRE",
    "UNIFORM",
    "SPORTSWEAR",
    "PROFESSIONAL_ATTIRE",
)

HEIGHTS = ("TALL", "SHORT")
HAIRSTYLES = ("CURLY", "LONG", "SHORT", "STRAIGHT")
BOOLEAN_FLAGS = ("BEARD", "GLASSES", "FRECKLES")
SKIN_TONES = ("LIGHT", "MEDIUM", "DARK", "OLIVE", "PALE", "TAN")

NEGATIONS = ("WITHOUT", "NO")

# Words that never start a color clause
NOT_COLORS = NEGATIONS + ("BARE",)


Attributes = Dict[str, AttributeValue]


class _Clause(TokenStream):
    """Cursor over one AND-separated clause."""

    def _word_then(self, first: Sequence[str], second: Sequence[str]) -> Optional[Token]:
        """Match ``<first> <second>`` and return the first word."""
        if self._peek(0).is_word(*first) and self._peek(1).is_word(*second):
            return self._peek(0)
        return None


class AttributeParser:
    """
    Parses the attribute section of a statement into an attribute map.

    Args:
        source: Text of the statement the tokens came from; used to recover
                raw text for ``NAME(key: value)`` parameters.
    """

    def __init__(self, source: str = ""):
        self.source = source
        self._rules: List[Callable[[_Clause, Attributes], bool]] = [
            self._parse_age,
            self._parse_size,
            self._parse_color_item,
            self._parse_emotion,
            self._parse_parameterized,
            self._parse_outfit,
            self._parse_height,
            self._parse_hairstyle,
            self._parse_flag,
            self._parse_skin,
            self._parse_negation,
            self._parse_bare_torso,
        ]

    def parse(self, tokens: Sequence[Token]) -> Attributes:
        """Parse attribute tokens (everything after ``WITH``)."""
        attributes: Attributes = {}
        self.parse_into(tokens, attributes)
        return attributes

    def parse_into(self, tokens: Sequence[Token], attributes: Attributes) -> None:
        """Parse attribute tokens, adding matched clauses to ``attributes``."""
        tokens = [t for t in tokens if t.type != TokenType.EOF]
        for clause in split_top_level(tokens, lambda t: t.is_word(AND)):
            if clause:
                self.parse_clause(clause, attributes)

    def parse_clause(self, tokens: Sequence[Token], attributes: Attributes) -> bool:
        """Apply the first matching rule. Returns False if none matched."""
        for rule in self._rules:
            if rule(_Clause(tokens, self.source), attributes):
                return True
        return False

    # =========================================================================
    # Rules
    # =========================================================================

    def _parse_age(self, clause: _Clause, attrs: Attributes) -> bool:
        """AGE 30"""
        if not clause._match_word("AGE"):
            return False
        number = clause._match(TokenType.NUMBER)
        if number is None or number.value < 0:
            return False
        attrs["age"] = Scalar(int(number.value))
        return True

    def _parse_size(self, clause: _Clause, attrs: Attributes) -> bool:
        """SIZE LARGE"""
        if not clause._match_word("SIZE"):
            return False
        token = clause._match(TokenType.WORD, TokenType.NUMBER)
        if token is None:
            return False
        attrs["size"] = Scalar(token.lexeme.lower())
        return True

    def _parse_color_item(self, clause: _Clause, attrs: Attributes) -> bool:
        """RED SHIRT, #00ff00 PANTS, BLONDE HAIR"""
        color = clause._current()
        item = clause._peek(1)
        if color.type == TokenType.WORD:
            if color.value in NOT_COLORS:
                return False
            if item.is_word("HAIR") and color.value in HAIRSTYLES:
                return False
        elif color.type != TokenType.HEX_COLOR:
            return False

        if item.is_word(*CLOTHING_ITEMS):
            group = "clothing"
        elif item.is_word(*APPEARANCE_ITEMS):
            group = "appearance"
        else:
            return False

        record_in(attrs, group)[item.value.lower()] = Scalar(normalize_color(color.lexeme))
        return True

    def _parse_emotion(self, clause: _Clause, attrs: Attributes) -> bool:
        """HAPPY FACE"""
        emotion = clause._word_then(EMOTIONS, ("FACE",))
        if emotion is None:
            return False
        attrs["emotion"] = Scalar(emotion.value.lower())
        return True

    def _parse_parameterized(self, clause: _Clause, attrs: Attributes) -> bool:
        """HAIR(COLOR: BROWN, STYLE: SHORT)"""
        name = clause._match(TokenType.WORD)
        if name is None or not clause._match(TokenType.LPAREN):
            return False

        inner: List[Token] = []
        depth = 1
        while not clause._is_at_end():
            token = clause._advance()
            if token.type == TokenType.LPAREN:
                depth += 1
            elif token.type == TokenType.RPAREN:
                depth -= 1
                if depth == 0:
                    break
            inner.append(token)
        if depth != 0 or not inner:
            return False

        record = Record()
        for part in split_top_level(inner, lambda t: t.type == TokenType.COMMA):
            self._parse_parameter(_Clause(part, self.source), record)
        attrs[name.lexeme.lower()] = record
        return True

    def _parse_parameter(self, param: _Clause, record: Record) -> None:
        """One ``key: value`` pair. Malformed pairs are skipped."""
        key = param._match(TokenType.WORD)
        if key is None or not param._match(TokenType.COLON):
            return
        value_tokens = param._rest()
        if not value_tokens:
            return
        record[key.lexeme.lower()] = Scalar(self._parameter_value(param, value_tokens))

    def _parameter_value(self, param: _Clause, tokens: List[Token]):
        if len(tokens) == 1:
            token = tokens[0]
            if token.type in (TokenType.NUMBER, TokenType.STRING):
                return token.value
        text = param._text(tokens)
        if is_color(text):
            return normalize_color(text)
        return text

    def _parse_outfit(self, clause: _Clause, attrs: Attributes) -> bool:
        """BUSINESS_SUIT"""
        outfit = clause._match_word(*OUTFITS)
        if outfit is None:
            return False
        attrs["outfit"] = Scalar(outfit.value.lower().replace("_", " "))
        return True

    def _parse_height(self, clause: _Clause, attrs: Attributes) -> bool:
        """TALL HEIGHT"""
        height = clause._word_then(HEIGHTS, ("HEIGHT",))
        if height is None:
            return False
        attrs["height"] = Scalar(height.value.lower())
        return True

    def _parse_hairstyle(self, clause: _Clause, attrs: Attributes) -> bool:
        """CURLY HAIR"""
        style = clause._word_then(HAIRSTYLES, ("HAIR",))
        if style is None:
            return False
        record_in(attrs, "appearance")["hairstyle"] = Scalar(style.value.lower())
        return True

    def _parse_flag(self, clause: _Clause, attrs: Attributes) -> bool:
        """BEARD, GLASSES, FRECKLES"""
        flag = clause._match_word(*BOOLEAN_FLAGS)
        if flag is None:
            return False
        attrs[flag.value.lower()] = Scalar(True)
        return True

    def _parse_skin(self, clause: _Clause, attrs: Attributes) -> bool:
        """OLIVE SKIN"""
        tone = clause._word_then(SKIN_TONES, ("SKIN",))
        if tone is None:
            return False
        record_in(attrs, "appearance")["skin"] = Scalar(tone.value.lower())
        return True

    def _parse_negation(self, clause: _Clause, attrs: Attributes) -> bool:
        """WITHOUT SHIRT, NO GLASSES"""
        if not clause._match_word(*NEGATIONS):
            return False
        item = clause._match(TokenType.WORD)
        if item is None:
            return False
        attrs[f"no_{item.value.lower()}"] = Scalar(True)
        return True

    def _parse_bare_torso(self, clause: _Clause, attrs: Attributes) -> bool:
        """BARE TORSO"""
        if not clause._match_phrase("BARE", "TORSO"):
            return False
        attrs["no_shirt"] = Scalar(True)
        return True


def parse_attributes(tokens: Sequence[Token], source: str = "") -> Attributes:
    """
    Convenience function to parse an attribute section.

    Args:
        tokens: Tokens following ``WITH``
        source: Statement text the tokens were produced from

    Returns:
        Attribute map containing only the clauses that matched
    """
    return AttributeParser(source).parse(tokens)
