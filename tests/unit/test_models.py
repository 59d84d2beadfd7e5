"""Unit tests for template entities and errors."""

import dataclasses

import pytest

from tmplcache.errors import (
    ExecutionError,
    SourceNotFoundError,
    TemplateError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    WriteError,
)
from tmplcache.models import TemplateData
from tmplcache.templates import TemplateLoader


class TestTemplateData:
    """Tests for TemplateData."""

    def test_defaults(self) -> None:
        """Test every slot has an empty default."""
        data = TemplateData()

        assert data.to_dict() == {
            "string_map": {},
            "int_map": {},
            "float_map": {},
            "data": {},
            "csrf_token": "",
            "flash": "",
            "warning": "",
            "error": "",
        }

    def test_defaults_not_shared(self) -> None:
        """Test mutable defaults are per instance."""
        first, second = TemplateData(), TemplateData()
        first.string_map["k"] = "v"

        assert second.string_map == {}

    def test_to_dict_values(self) -> None:
        """Test populated values are exported."""
        data = TemplateData(int_map={"count": 3}, warning="careful", csrf_token="tok")

        result = data.to_dict()

        assert result["int_map"] == {"count": 3}
        assert result["warning"] == "careful"
        assert result["csrf_token"] == "tok"


class TestCompiledTemplate:
    """Tests for CompiledTemplate."""

    def test_immutable(self) -> None:
        """Test compiled templates cannot be modified."""
        compiled = TemplateLoader.from_mapping({"p": "x"}).load("p")

        with pytest.raises(dataclasses.FrozenInstanceError):
            compiled.name = "other"  # type: ignore[misc]

    def test_generate_yields_chunks(self) -> None:
        """Test streaming execution produces the same text as render."""
        compiled = TemplateLoader.from_mapping({"p": "{% for i in r %}{{ i }},{% endfor %}"}).load("p")

        assert "".join(compiled.generate({"r": [1, 2]})) == compiled.render({"r": [1, 2]}) == "1,2,"


class TestErrors:
    """Tests for the error taxonomy."""

    @pytest.mark.parametrize(
        "error",
        [
            SourceNotFoundError("a.tmpl"),
            TemplateSyntaxError("a.tmpl", "bad", 3),
            TemplateNotFoundError("a.tmpl"),
            ExecutionError("a.tmpl", "boom"),
            WriteError("a.tmpl", "closed"),
        ],
    )
    def test_all_errors_share_base(self, error: TemplateError) -> None:
        """Test every error is a TemplateError with a message."""
        assert isinstance(error, TemplateError)
        assert "a.tmpl" in str(error)

    def test_syntax_error_fields(self) -> None:
        """Test syntax errors keep the fragment, line and bare message."""
        error = TemplateSyntaxError("base.layout.tmpl", "unexpected end", 7)

        assert error.fragment == "base.layout.tmpl"
        assert error.lineno == 7
        assert error.message == "unexpected end"
        assert str(error) == "Syntax error in base.layout.tmpl:7: unexpected end"

    def test_source_not_found_custom_message(self) -> None:
        """Test a custom message replaces the default."""
        error = SourceNotFoundError("x", "Template source not found: x (referenced by y)")

        assert error.identifier == "x"
        assert "referenced by y" in error.message
