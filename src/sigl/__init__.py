"""
SIGL (Scene Illustration Graphics Language) front end.

This package provides:
- Segmenter and tokenizer: Splits source into statements and tokens
- Clause parsers: Attribute and position clauses of DRAW/UPDATE
- Entity type mapper: DRAW keywords to (category, subtype) plus defaults
- Resolver: Relative positions to absolute canvas coordinates
- Vocabulary: YAML catalogs for the core language and its extensions

Usage:
    from sigl import parse

    result = parse('''
        // A small family
        DRAW MAN WITH AGE 35 AND BLUE SHIRT AT LEFT
        DRAW WOMAN WITH RED DRESS NEXT TO MAN
        DRAW GIRL WITH HAPPY FACE BELOW WOMAN
    ''')
    if not result.success:
        print(result.diagnostics.format_all())
    for entity in result.scene.entities:
        print(entity.id, entity.subtype, entity.position.x, entity.position.y)
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
)

from .lexer import (
    Statement,
    Lexer,
    segment,
    tokenize,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    DiagnosticCollector,
    SiglError,
    LexerError,
    ParseError,
    FatalParseError,
)

from .values import (
    AttributeValue,
    Scalar,
    Record,
)

from .scene import (
    Relation,
    Position,
    Entity,
    Environment,
    Camera,
    ExportOptions,
    SceneMetadata,
    SceneDefinition,
)

from .attributes import (
    AttributeParser,
    parse_attributes,
)

from .positions import (
    PositionParser,
    PositionClause,
    parse_position,
)

from .entity_types import (
    EntityType,
    EntityTypeMapper,
)

from .resolver import (
    RelativePositionResolver,
    resolve_positions,
)

from .vocabulary import (
    Vocabulary,
    CatalogVocabulary,
    load_vocabulary,
    clear_cache,
)

from .parser import (
    Parser,
    ParserOptions,
    ParseResult,
    parse,
)


__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',

    # Segmenter / tokenizer
    'Statement',
    'Lexer',
    'segment',
    'tokenize',

    # Errors
    'ErrorSeverity',
    'Diagnostic',
    'DiagnosticCollector',
    'SiglError',
    'LexerError',
    'ParseError',
    'FatalParseError',

    # Scene
    'AttributeValue',
    'Scalar',
    'Record',
    'Relation',
    'Position',
    'Entity',
    'Environment',
    'Camera',
    'ExportOptions',
    'SceneMetadata',
    'SceneDefinition',

    # Clause parsers
    'AttributeParser',
    'parse_attributes',
    'PositionParser',
    'PositionClause',
    'parse_position',

    # Entity types and vocabulary
    'EntityType',
    'EntityTypeMapper',
    'Vocabulary',
    'CatalogVocabulary',
    'load_vocabulary',
    'clear_cache',

    # Resolution
    'RelativePositionResolver',
    'resolve_positions',

    # Parser
    'Parser',
    'ParserOptions',
    'ParseResult',
    'parse',
]
