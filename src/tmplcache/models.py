"""Template entities.

This module contains the data passed through the rendering pipeline:
- CompiledTemplate: Parsed, ready-to-execute page with its layout fragments
- TemplateData: Conventional payload handed from request handlers to pages
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from jinja2 import Template


@dataclass(frozen=True, eq=False)
class CompiledTemplate:
    """Executable artifact built from a page fragment and shared layouts.

    Instances are immutable. Layout blocks referenced by the page are resolved
    against the fragments captured at load time, never against the backing
    source, so a stored template keeps rendering identically even if the
    files on disk change.

    Attributes:
        name: Template name (page fragment identifier)
        template: Compiled Jinja2 template for the page
        fragments: Identifiers of every fragment compiled into this template
    """

    name: str
    template: Template
    fragments: tuple[str, ...] = ()

    def render(self, context: dict[str, Any]) -> str:
        """Execute the template against a context mapping."""
        return self.template.render(context)

    def generate(self, context: dict[str, Any]) -> Iterator[str]:
        """Execute the template, yielding output chunks as they are produced."""
        return self.template.generate(context)


@dataclass
class TemplateData:
    """Data sent from handlers to templates.

    Gives pages a stable set of slots for common request-scoped values so
    handlers don't have to invent an ad-hoc mapping per page.

    Attributes:
        string_map: String key-value pairs
        int_map: Integer key-value pairs
        float_map: Float key-value pairs
        data: Arbitrary values
        csrf_token: Token for protecting forms against CSRF
        flash: Message shown after a successful action
        warning: Warning message
        error: Error message
    """

    string_map: dict[str, str] = field(default_factory=dict)
    int_map: dict[str, int] = field(default_factory=dict)
    float_map: dict[str, float] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict)
    csrf_token: str = ""
    flash: str = ""
    warning: str = ""
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to a template context mapping."""
        return {
            "string_map": self.string_map,
            "int_map": self.int_map,
            "float_map": self.float_map,
            "data": self.data,
            "csrf_token": self.csrf_token,
            "flash": self.flash,
            "warning": self.warning,
            "error": self.error,
        }
