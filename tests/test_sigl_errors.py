"""
Unit tests for SIGL diagnostics.
"""

from sigl import parse
from sigl.errors import DiagnosticCollector, warning_unknown_position
from sigl.lexer import segment


class TestDiagnosticFormat:
    """Test rendering a single diagnostic."""

    def test_caret_under_indented_statement(self):
        """The caret lines up with the token inside the trimmed statement."""
        result = parse("\n    WAVE HELLO", filename="scene.sigl")
        text = result.errors[0].format()
        lines = text.splitlines()
        assert lines[0] == "scene.sigl:2:5: error[E101]: unknown statement: WAVE HELLO"
        assert lines[1] == "   2 | WAVE HELLO"
        assert lines[2] == "     | " + "^" * len("WAVE HELLO")

    def test_hints_listed(self):
        """Hints follow the caret line."""
        (statement,) = segment("DRAW MAN AT NOWHERE")
        warning = warning_unknown_position("NOWHERE", statement.span(), statement.text)
        assert warning.format().endswith("= the entity was placed at the canvas center")

    def test_to_json(self):
        """JSON output carries code, severity and location."""
        result = parse("DRAW MAN\nEXPORT PNG")
        data = result.errors[0].to_json()
        assert data["code"] == "E106"
        assert data["severity"] == "error"
        assert (data["line"], data["column"]) == (2, 8)


class TestCollector:
    """Test collecting diagnostics over a parse."""

    def test_empty(self):
        """A new collector has nothing to report."""
        collector = DiagnosticCollector()
        assert not collector.has_errors
        assert collector.to_json() == {"diagnostics": []}

    def test_errors_and_warnings_split(self):
        """Warnings never count as errors."""
        result = parse("DRAW MAN AT NOWHERE\nJUMP")
        assert [d.code for d in result.diagnostics.warnings] == ["W105"]
        assert [d.code for d in result.diagnostics.errors] == ["E101"]
        assert result.diagnostics.format_all().endswith("1 error(s), 1 warning(s)")
