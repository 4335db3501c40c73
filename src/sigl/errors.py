"""
SIGL-specific exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Statement parse errors
- W1xx: Warnings (never fail a parse)
- F0xx: Fatal setup errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan, SourceLocation


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """One error or warning, located on a statement line."""
    code: str                       # E101, W101, etc.
    message: str
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The statement text
    hints: List[str] = field(default_factory=list)

    @property
    def line(self) -> int:
        """1-based physical line the diagnostic refers to (0 if none)."""
        return self.span.start.line

    def format(self) -> str:
        """``line:col: severity[code]: message``, then the statement with a caret."""
        parts = [f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}"]

        if self.source_line is not None:
            # offsets index the trimmed statement text, columns the raw line
            start = self.span.start.offset
            width = max(1, self.span.end.offset - start)
            parts.append(f"{self.line:>4} | {self.source_line}")
            parts.append(f"     | {' ' * start}{'^' * width}")

        parts.extend(f"     = {hint}" for hint in self.hints)
        return "\n".join(parts)

    def to_json(self) -> dict:
        return {
            "code": self.code,
            "severity": self.severity.value,
            "message": self.message,
            "line": self.span.start.line,
            "column": self.span.start.column,
            "hints": list(self.hints),
        }


class SiglError(Exception):
    """Base exception for SIGL errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(SiglError):
    """Error while tokenizing a statement (E0xx)."""
    pass


class ParseError(SiglError):
    """Malformed statement (E1xx). Collected, never aborts a parse."""
    pass


class FatalParseError(SiglError):
    """The parser could not set itself up (F0xx). Raised from ``parse()``."""
    pass


def line_span(line: int, text: str = "", filename: Optional[str] = None) -> SourceSpan:
    """Span covering a whole statement line."""
    return SourceSpan(
        SourceLocation(line, 1, 0, filename),
        SourceLocation(line, len(text) + 1, len(text), filename),
    )


# --- Lexer error codes ---

def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["string literals must be closed with matching quotes"],
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unknown_statement(text: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E101: Statement does not start with a known command."""
    diag = Diagnostic(
        code="E101",
        message=f"unknown statement: {text[:50]}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["statements start with DRAW, UPDATE, LOAD EXTENSION, ADD ENVIRONMENT or EXPORT"],
    )
    return ParseError(diag)


def _statement_error(code: str, message: str, span: SourceSpan,
                     source_line: str = None, hints: List[str] = None) -> ParseError:
    diag = Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )
    return ParseError(diag)


def error_invalid_draw(found: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E102: DRAW without an entity keyword."""
    return _statement_error(
        "E102", f"invalid DRAW statement: expected entity, found {found}",
        span, source_line, ["DRAW <entity> [WITH <attributes>] [<position>]"],
    )


def error_invalid_load(found: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E103: LOAD EXTENSION without a name."""
    return _statement_error(
        "E103", f"invalid LOAD EXTENSION command: expected extension name, found {found}",
        span, source_line,
    )


def error_invalid_environment(found: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E104: ADD ENVIRONMENT without a name."""
    return _statement_error(
        "E104", f"invalid ADD ENVIRONMENT command: expected environment name, found {found}",
        span, source_line,
    )


def error_invalid_update(message: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E105: Malformed UPDATE."""
    return _statement_error(
        "E105", f"invalid UPDATE command: {message}",
        span, source_line, ["UPDATE <entity> WITH <attributes>"],
    )


def error_invalid_export(message: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E106: Malformed EXPORT."""
    return _statement_error(
        "E106", f"invalid EXPORT command: {message}",
        span, source_line, ["EXPORT AS <PNG|JPEG|WEBP|SVG|PDF|GIF> [WITH RESOLUTION: ...]"],
    )


def error_invalid_position(message: str, span: SourceSpan, source_line: str = None) -> ParseError:
    """E107: Malformed position clause."""
    return _statement_error("E107", f"invalid position: {message}", span, source_line)


# --- Warnings ---

def _warning(code: str, message: str, span: SourceSpan,
             source_line: str = None, hints: List[str] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )


def warning_unresolved_target(entity_id: str, target: str, span: SourceSpan,
                              source_line: str = None) -> Diagnostic:
    """W101: Relative position target not found."""
    return _warning(
        "W101",
        f"could not find target entity '{target}' for relative positioning of {entity_id}",
        span, source_line,
        ["the entity was placed at the canvas center"],
    )


def warning_unknown_extension(name: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W102: LOAD EXTENSION of a name the vocabulary does not know."""
    return _warning("W102", f"unknown extension '{name}'", span, source_line)


def warning_update_target_missing(ref: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W103: UPDATE target not found."""
    return _warning("W103", f"no entity matches '{ref}'; UPDATE ignored", span, source_line)


def warning_unknown_export_option(name: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W104: Unknown EXPORT option."""
    return _warning(
        "W104", f"unknown export option '{name}'", span, source_line,
        ["known options: RESOLUTION, QUALITY, DPI"],
    )


def warning_unknown_position(name: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W105: AT target that is not a known position."""
    return _warning(
        "W105", f"unknown position '{name}'", span, source_line,
        ["the entity was placed at the canvas center"],
    )


# --- Fatal ---

def error_vocabulary_unavailable(reason: str) -> FatalParseError:
    """F001: Vocabulary catalogs could not be loaded."""
    diag = Diagnostic(
        code="F001",
        message=f"cannot load vocabulary: {reason}",
        severity=ErrorSeverity.ERROR,
        span=line_span(0),
    )
    return FatalParseError(diag)


class DiagnosticCollector:
    """Errors and warnings of one parse, in the order they were found."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def add_error(self, error: SiglError) -> None:
        """Record a raised statement error."""
        self.add(error.diagnostic)

    def _with_severity(self, severity: ErrorSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    @property
    def errors(self) -> List[Diagnostic]:
        return self._with_severity(ErrorSeverity.ERROR)

    @property
    def warnings(self) -> List[Diagnostic]:
        return self._with_severity(ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == ErrorSeverity.ERROR for d in self.diagnostics)

    def format_all(self) -> str:
        """All diagnostics followed by an error/warning count."""
        parts = [d.format() for d in self.diagnostics]
        parts.append(f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        return {"diagnostics": [d.to_json() for d in self.diagnostics]}
