"""
Statement dispatcher for SIGL.

Turns SIGL source into a ``SceneDefinition``. Every statement is parsed on its
own: a malformed statement is recorded as a diagnostic and the parse carries
on with the next line. Relative positions are resolved once all statements
have been processed, and only if none of them failed.

Example:
    result = parse('''
        LOAD EXTENSION educational
        ADD ENVIRONMENT classroom
        DRAW TEACHER WITH BLUE SHIRT AT LEFT
        DRAW STUDENT NEXT TO TEACHER
    ''')
    if result.success:
        render(result.scene)
"""

import copy
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

import yaml

from .attributes import AttributeParser
from .entity_types import ANIMAL_PREFIX, EntityTypeMapper
from .errors import (
    Diagnostic,
    DiagnosticCollector,
    SiglError,
    error_invalid_draw,
    error_invalid_environment,
    error_invalid_export,
    error_invalid_load,
    error_invalid_update,
    error_unknown_statement,
    error_vocabulary_unavailable,
    warning_unknown_export_option,
    warning_unknown_extension,
    warning_update_target_missing,
)
from .lexer import Lexer, Statement, segment
from .positions import PositionParser
from .resolver import RelativePositionResolver
from .scene import Entity, ExportOptions, Position, SceneDefinition
from .stream import TokenStream, find_relation, relation_at
from .tokens import STATEMENT_KEYWORDS, Token, TokenType, describe
from .vocabulary import Vocabulary, load_vocabulary

logger = logging.getLogger(__name__)


EXPORT_FORMATS = ("PNG", "JPEG", "WEBP", "SVG", "PDF", "GIF")

RESOLUTION_PRESETS = {
    "THUMBNAIL": (150, 150),
    "HD": (1920, 1080),
    "FULL_HD": (1920, 1080),
    "4K": (3840, 2160),
}

QUALITY_LEVELS = ("LOW", "MEDIUM", "HIGH", "ULTRA")

EXPORT_OPTION_KEYS = ("RESOLUTION", "QUALITY", "DPI")


@dataclass
class ParserOptions:
    """Parser configuration."""
    strict_extensions: bool = False     # extension keywords need LOAD EXTENSION first


@dataclass
class ParseResult:
    """Outcome of one parse. ``scene`` is returned even when errors occurred."""
    success: bool
    scene: SceneDefinition
    diagnostics: DiagnosticCollector
    extensions: FrozenSet[str] = frozenset()

    @property
    def errors(self) -> List[Diagnostic]:
        return self.diagnostics.errors

    @property
    def warnings(self) -> List[Diagnostic]:
        return self.diagnostics.warnings


@dataclass
class ParseContext:
    """State of a single parse; created by ``Parser.parse`` and then discarded."""
    vocabulary: Vocabulary
    options: ParserOptions
    scene: SceneDefinition = field(default_factory=SceneDefinition)
    diagnostics: DiagnosticCollector = field(default_factory=DiagnosticCollector)
    extensions: List[str] = field(default_factory=list)
    sources: Dict[str, Statement] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> str:
        return f"entity_{next(self._ids)}"

    def load_extension(self, name: str) -> None:
        if name not in self.extensions:
            self.extensions.append(name)
            self.scene.metadata.extensions.append(name)

    def mapper(self) -> EntityTypeMapper:
        return EntityTypeMapper(self.vocabulary, self.extensions,
                                self.options.strict_extensions)


class StatementStream(TokenStream):
    """Tokens of one statement plus the statement they came from."""

    def __init__(self, statement: Statement, tokens: List[Token]):
        super().__init__(tokens, statement.text)
        self.statement = statement


class Parser:
    """
    SIGL parser.

    Usage:
        parser = Parser()
        result = parser.parse(source)

    A ``Parser`` holds configuration only and can be reused; every call to
    ``parse()`` starts from a fresh context.

    Args:
        vocabulary: Keyword and environment tables (default: the catalogs
                    found by ``load_vocabulary()``)
        options: Parser options
    """

    def __init__(self, vocabulary: Optional[Vocabulary] = None,
                 options: Optional[ParserOptions] = None):
        self.vocabulary = vocabulary
        self.options = options or ParserOptions()
        self._handlers = {
            "LOAD": self._parse_load,
            "ADD": self._parse_environment,
            "DRAW": self._parse_draw,
            "UPDATE": self._parse_update,
            "EXPORT": self._parse_export,
        }

    def _get_vocabulary(self) -> Vocabulary:
        if self.vocabulary is None:
            try:
                self.vocabulary = load_vocabulary()
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise error_vocabulary_unavailable(str(e)) from e
        return self.vocabulary

    def parse(self, source: str, filename: Optional[str] = None) -> ParseResult:
        """
        Parse SIGL source.

        Args:
            source: SIGL program text
            filename: Optional filename for diagnostics

        Returns:
            ParseResult; ``success`` is False if any statement failed

        Raises:
            FatalParseError: If the vocabulary cannot be loaded
        """
        ctx = ParseContext(self._get_vocabulary(), self.options)

        for statement in segment(source, filename):
            try:
                self.parse_statement(ctx, statement)
            except SiglError as e:
                logger.debug("line %d: %s", statement.line, e.diagnostic.message)
                ctx.diagnostics.add_error(e)

        if not ctx.diagnostics.has_errors:
            RelativePositionResolver(ctx.diagnostics, ctx.sources).resolve(ctx.scene)

        ctx.scene.freeze()
        return ParseResult(
            success=not ctx.diagnostics.has_errors,
            scene=ctx.scene,
            diagnostics=ctx.diagnostics,
            extensions=frozenset(ctx.extensions),
        )

    def parse_statement(self, ctx: ParseContext, statement: Statement) -> None:
        """
        Dispatch one statement to its handler.

        Raises:
            SiglError: If the statement is malformed
        """
        tokens = Lexer(statement).tokenize()
        stream = StatementStream(statement, tokens)
        first = stream._current()

        phrase = STATEMENT_KEYWORDS.get(first.value) if first.type == TokenType.WORD else None
        if phrase is None or not stream._match_phrase(*phrase):
            raise error_unknown_statement(statement.text, statement.span(), statement.text)
        handler = self._handlers[first.value]

        logger.debug("line %d: %s", statement.line, first.value)
        handler(ctx, stream)

    # =========================================================================
    # LOAD EXTENSION / ADD ENVIRONMENT
    # =========================================================================

    def _parse_load(self, ctx: ParseContext, stream: StatementStream) -> None:
        """LOAD EXTENSION <name>"""
        statement = stream.statement
        name = stream._match(TokenType.WORD)
        if name is None:
            current = stream._current()
            raise error_invalid_load(describe(current), current.span, statement.text)

        extension = name.lexeme.lower()
        ctx.load_extension(extension)
        if extension not in ctx.vocabulary.extension_names():
            ctx.diagnostics.add(warning_unknown_extension(extension, name.span, statement.text))

    def _parse_environment(self, ctx: ParseContext, stream: StatementStream) -> None:
        """ADD ENVIRONMENT <name>"""
        statement = stream.statement
        name = stream._match(TokenType.WORD)
        if name is None:
            current = stream._current()
            raise error_invalid_environment(describe(current), current.span, statement.text)

        environment = ctx.scene.environment
        environment.type = name.lexeme.lower()
        preset = ctx.vocabulary.lookup_environment(
            environment.type, ctx.extensions, ctx.options.strict_extensions)
        if preset is not None:
            if preset.background:
                environment.background = copy.deepcopy(preset.background)
            environment.lighting.update(preset.lighting)

    # =========================================================================
    # DRAW
    # =========================================================================

    def _parse_draw(self, ctx: ParseContext, stream: StatementStream) -> None:
        """DRAW <entity> [WITH <attributes>] [<position>]"""
        statement = stream.statement
        keyword = self._parse_entity_keyword(stream)
        rest = stream._rest()
        split = find_relation(rest)
        attribute_tokens = rest if split is None else rest[:split]
        position_tokens = [] if split is None else rest[split:]

        position = Position()
        if position_tokens:
            clause = PositionParser(position_tokens, statement.text).parse()
            position = clause.position
            if clause.warning is not None:
                ctx.diagnostics.add(clause.warning)

        mapper = ctx.mapper()
        mapped = mapper.map(keyword)
        attributes = mapper.defaults_for(mapped.subtype)
        parser = AttributeParser(statement.text)
        if attribute_tokens and attribute_tokens[0].is_word("WITH"):
            attributes.update(parser.parse(attribute_tokens[1:]))
        elif attribute_tokens and attribute_tokens[0].is_word("WITHOUT"):
            attributes.update(parser.parse(attribute_tokens))

        entity = Entity(
            id=ctx.next_id(),
            category=mapped.category,
            subtype=mapped.subtype,
            attributes=attributes,
            position=position,
            keyword=mapped.keyword,
        )
        ctx.scene.add_entity(entity)
        ctx.sources[entity.id] = statement
        logger.debug("%s: %s %s/%s", entity.id, keyword, entity.category, entity.subtype)

    def _parse_entity_keyword(self, stream: StatementStream) -> str:
        """
        The DRAW keyword; ``ANIMAL <kind>`` becomes ``ANIMAL_<KIND>``.

        A statement that goes straight into a clause (``DRAW AT LEFT``) draws
        an unnamed entity, which maps to a generic person.
        """
        token = stream._current()
        if token.type != TokenType.WORD:
            raise error_invalid_draw(describe(token), token.span, stream.statement.text)
        if self._starts_clause(stream):
            return ""
        stream._advance()

        if token.value == "ANIMAL":
            kind = stream._current()
            if kind.type == TokenType.WORD and not self._starts_clause(stream):
                stream._advance()
                return ANIMAL_PREFIX + kind.value
        return token.value

    def _starts_clause(self, stream: StatementStream) -> bool:
        """True if the current token opens an attribute or position clause."""
        return (stream._check_word("WITH", "WITHOUT")
                or relation_at(stream.tokens, stream.pos) is not None)

    # =========================================================================
    # UPDATE
    # =========================================================================

    def _parse_update(self, ctx: ParseContext, stream: StatementStream) -> None:
        """UPDATE <entity-ref> WITH <attributes>"""
        statement = stream.statement
        ref = stream._match(TokenType.WORD)
        if ref is None:
            current = stream._current()
            raise error_invalid_update(f"expected entity, found {describe(current)}",
                                       current.span, statement.text)
        with_token = stream._match_word("WITH")
        if with_token is None:
            current = stream._current()
            raise error_invalid_update(f"expected WITH, found {describe(current)}",
                                       current.span, statement.text)
        if stream._is_at_end():
            raise error_invalid_update("expected attributes after WITH",
                                       with_token.span, statement.text)

        target = self._find_update_target(ctx, ref)
        if target is None:
            ctx.diagnostics.add(warning_update_target_missing(ref.lexeme, ref.span, statement.text))
            return

        updates = AttributeParser(statement.text).parse(stream._rest())
        target.attributes.update(updates)
        logger.debug("%s updated: %s", target.id, ", ".join(updates))

    def _find_update_target(self, ctx: ParseContext, ref: Token) -> Optional[Entity]:
        mapped = ctx.mapper().map(ref.value)
        for entity in ctx.scene.entities:
            if entity.id == ref.lexeme or entity.subtype == ref.lexeme.lower():
                return entity
            if mapped.recognized and entity.subtype == mapped.subtype:
                return entity
            if entity.keyword == ref.value:
                return entity
        return None

    # =========================================================================
    # EXPORT
    # =========================================================================

    def _parse_export(self, ctx: ParseContext, stream: StatementStream) -> None:
        """EXPORT AS <format> [WITH] [RESOLUTION: ...] [QUALITY: ...] [DPI: n]"""
        statement = stream.statement
        if not stream._match_word("AS"):
            current = stream._current()
            raise error_invalid_export(f"expected AS, found {describe(current)}",
                                       current.span, statement.text)
        fmt = stream._current()
        if not fmt.is_word(*EXPORT_FORMATS):
            raise error_invalid_export(f"expected format, found {describe(fmt)}",
                                       fmt.span, statement.text)
        stream._advance()

        options = ExportOptions(format=fmt.value.lower())
        while not stream._is_at_end():
            if stream._match_word("WITH", "AND") or stream._match(TokenType.COMMA):
                continue
            key = stream._current()
            if key.type != TokenType.WORD:
                raise error_invalid_export(f"unexpected {describe(key)}", key.span, statement.text)
            stream._advance()
            has_colon = stream._match(TokenType.COLON) is not None
            self._parse_export_option(ctx, stream, key, options, has_colon)

        ctx.scene.metadata.export_options = options

    def _parse_export_option(self, ctx: ParseContext, stream: StatementStream,
                             key: Token, options: ExportOptions, has_colon: bool = True) -> None:
        statement = stream.statement
        value = stream._current()

        if key.value == "RESOLUTION":
            if value.type == TokenType.DIMENSION:
                options.width, options.height = value.value
            elif value.type == TokenType.WORD and value.value in RESOLUTION_PRESETS:
                options.width, options.height = RESOLUTION_PRESETS[value.value]
            else:
                raise error_invalid_export(f"invalid resolution {describe(value)}",
                                           value.span, statement.text)
        elif key.value == "QUALITY":
            if value.is_word(*QUALITY_LEVELS):
                options.quality = value.value.lower()
            elif value.type == TokenType.NUMBER and isinstance(value.value, int):
                options.quality = value.value
            else:
                raise error_invalid_export(f"invalid quality {describe(value)}",
                                           value.span, statement.text)
        elif key.value == "DPI":
            if value.type == TokenType.NUMBER and isinstance(value.value, int) and value.value > 0:
                options.dpi = value.value
            else:
                raise error_invalid_export(f"invalid DPI {describe(value)}",
                                           value.span, statement.text)
        else:
            ctx.diagnostics.add(warning_unknown_export_option(key.lexeme, key.span, statement.text))
            # a bare flag such as TRANSPARENT has no value
            if not has_colon and self._at_export_key(stream):
                return

        stream._advance()

    def _at_export_key(self, stream: StatementStream) -> bool:
        """True if the current token starts the next option rather than a value."""
        if stream._is_at_end() or stream._check(TokenType.COMMA):
            return True
        if stream._check_word("WITH", "AND", *EXPORT_OPTION_KEYS):
            return True
        return stream._check(TokenType.WORD) and stream._peek(1).type == TokenType.COLON


def parse(source: str, filename: Optional[str] = None,
          vocabulary: Optional[Vocabulary] = None,
          options: Optional[ParserOptions] = None) -> ParseResult:
    """
    Convenience function to parse SIGL source.

    Args:
        source: SIGL program text
        filename: Optional filename for diagnostics
        vocabulary: Optional vocabulary (default: bundled and configured catalogs)
        options: Optional parser options

    Returns:
        ParseResult with the scene and all diagnostics

    Raises:
        FatalParseError: If the vocabulary cannot be loaded
    """
    return Parser(vocabulary, options).parse(source, filename)
