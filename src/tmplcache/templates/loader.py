"""Template loader: turns backing-source fragments into compiled templates.

A page is compiled together with every shared layout fragment (files matching
the layout pattern, ``*.layout.tmpl`` by default). All fragments are read and
compiled up front, so a CompiledTemplate never goes back to the backing
source while it executes.

Backing sources are plain Jinja2 loaders:
- FileSystemLoader: a template directory
- PackageLoader: templates embedded in an installed Python package
- DictLoader: in-memory strings (tests, generated templates)

The loader performs no caching. Loading the same fragments twice yields two
equivalent, independent CompiledTemplate objects; reuse is the job of
TemplateStore.
"""

import fnmatch
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import meta

from tmplcache.errors import SourceNotFoundError, TemplateSyntaxError
from tmplcache.models import CompiledTemplate
from tmplcache.templates.filters import DEFAULT_FILTERS, DEFAULT_TESTS

logger = logging.getLogger(__name__)

DEFAULT_PAGE_PATTERN = "*.page.tmpl"
DEFAULT_LAYOUT_PATTERN = "*.layout.tmpl"


class TemplateLoader:
    """Compiles named pages plus shared layout fragments.

    Usage:
        loader = TemplateLoader.from_directory("templates")
        compiled = loader.load("home.page.tmpl")
    """

    def __init__(
        self,
        source: jinja2.BaseLoader,
        page_pattern: str = DEFAULT_PAGE_PATTERN,
        layout_pattern: str = DEFAULT_LAYOUT_PATTERN,
        autoescape: bool = True,
        filters: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            source: Jinja2 loader used as the backing source
            page_pattern: Glob matching page fragment identifiers
            layout_pattern: Glob matching shared layout fragment identifiers
            autoescape: Whether to HTML-escape substituted values
            filters: Extra Jinja2 filters registered on compiled templates
        """
        self._source = source
        self.page_pattern = page_pattern
        self.layout_pattern = layout_pattern
        self.autoescape = autoescape
        self._filters = dict(filters or {})

        # Only used to call the source's get_source/list_templates; never
        # compiles anything, so it must not cache either
        self._source_env = jinja2.Environment(loader=source, cache_size=0)

    @classmethod
    def from_directory(cls, directory: str | Path, **kwargs: Any) -> "TemplateLoader":
        """Create a loader reading fragments from a filesystem directory."""
        return cls(jinja2.FileSystemLoader(str(directory), encoding="utf-8"), **kwargs)

    @classmethod
    def from_package(
        cls,
        package: str,
        path: str = "templates",
        **kwargs: Any,
    ) -> "TemplateLoader":
        """Create a loader reading fragments embedded in an installed package."""
        return cls(jinja2.PackageLoader(package, path), **kwargs)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str], **kwargs: Any) -> "TemplateLoader":
        """Create a loader over in-memory template strings."""
        return cls(jinja2.DictLoader(dict(mapping)), **kwargs)

    # =========================================================================
    # Discovery
    # =========================================================================

    def list_templates(self) -> list[str]:
        """List every fragment identifier the backing source can enumerate."""
        try:
            return sorted(self._source.list_templates())
        except TypeError:
            # Loaders such as FunctionLoader cannot enumerate their templates
            logger.debug("Backing source cannot list templates: %r", self._source)
            return []

    def list_pages(self) -> list[str]:
        """List page fragment identifiers, sorted."""
        return [t for t in self.list_templates() if fnmatch.fnmatchcase(t, self.page_pattern)]

    def list_layouts(self) -> list[str]:
        """List shared layout fragment identifiers, sorted."""
        return [t for t in self.list_templates() if fnmatch.fnmatchcase(t, self.layout_pattern)]

    # =========================================================================
    # Loading
    # =========================================================================

    def read(self, identifier: str) -> str:
        """Read the raw source of one fragment.

        Raises:
            SourceNotFoundError: If the backing source has no such fragment
            TemplateSyntaxError: If the fragment is not valid UTF-8
        """
        try:
            source, _filename, _uptodate = self._source.get_source(
                self._source_env, identifier
            )
        except jinja2.TemplateNotFound as e:
            raise SourceNotFoundError(identifier) from e
        except UnicodeDecodeError as e:
            raise TemplateSyntaxError(
                identifier, f"invalid UTF-8: {e.reason} at byte {e.start}"
            ) from e
        except OSError as e:
            raise SourceNotFoundError(
                identifier, f"Failed to read template source {identifier}: {e}"
            ) from e
        return source

    def load(self, name: str) -> CompiledTemplate:
        """Compile a page together with every shared layout fragment.

        Args:
            name: Identifier of the page fragment

        Returns:
            CompiledTemplate for the page

        Raises:
            SourceNotFoundError: If the page, a layout, or a fragment they
                statically reference cannot be read
            TemplateSyntaxError: If any fragment fails to parse
        """
        fragments: dict[str, str] = {name: self.read(name)}
        for layout in self.list_layouts():
            if layout != name:
                fragments[layout] = self.read(layout)

        # DictLoader keeps a reference to `fragments`, so fragments pulled in
        # below become visible to the environment
        env = self._create_environment(fragments)

        # Page first so its own errors win over layout errors
        pending = [name] + sorted(f for f in fragments if f != name)
        ordered: list[str] = []
        while pending:
            identifier = pending.pop(0)
            if identifier in ordered:
                continue
            ordered.append(identifier)
            for ref in self._find_references(env, identifier, fragments[identifier]):
                if ref not in fragments:
                    fragments[ref] = self._read_reference(ref, identifier)
                    pending.append(ref)

        for identifier in ordered:
            try:
                env.get_template(identifier)
            except jinja2.TemplateSyntaxError as e:
                raise TemplateSyntaxError(identifier, e.message or str(e), e.lineno) from e

        logger.debug("Compiled template %s from %d fragment(s)", name, len(fragments))
        return CompiledTemplate(
            name=name,
            template=env.get_template(name),
            fragments=tuple(ordered),
        )

    def _create_environment(self, fragments: dict[str, str]) -> jinja2.Environment:
        """Create an environment pinned to a snapshot of fragment sources."""
        env = jinja2.Environment(
            loader=jinja2.DictLoader(fragments),
            undefined=jinja2.StrictUndefined,
            autoescape=self.autoescape,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            auto_reload=False,
        )
        env.filters.update(DEFAULT_FILTERS)
        env.filters.update(self._filters)
        env.tests.update(DEFAULT_TESTS)
        return env

    def _find_references(
        self,
        env: jinja2.Environment,
        identifier: str,
        source: str,
    ) -> list[str]:
        """Parse one fragment and return the fragments it statically references."""
        try:
            ast = env.parse(source, identifier)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateSyntaxError(identifier, e.message or str(e), e.lineno) from e

        # Dynamic references (variables) come back as None and are only known
        # at render time
        return [ref for ref in meta.find_referenced_templates(ast) if ref is not None]

    def _read_reference(self, ref: str, referrer: str) -> str:
        try:
            return self.read(ref)
        except SourceNotFoundError as e:
            raise SourceNotFoundError(
                ref,
                f"Template source not found: {ref} (referenced by {referrer})",
            ) from e
