"""Template renderer: the entry point request handlers call.

Rendering is two-phase. The compiled template is executed into an in-memory
buffer first, and the buffer is written to the sink only if execution
succeeded. A failing render therefore never leaves a partial page in an HTTP
response or output file.

The renderer does not log or swallow errors; it raises the typed errors from
tmplcache.errors and leaves the user-visible response (e.g. HTTP 500) to the
caller.
"""

import dataclasses
import io
import logging
import os
import tempfile
from collections.abc import Mapping
from functools import partial
from pathlib import Path
from typing import Any

from tmplcache.config import AppConfig
from tmplcache.errors import (
    ExecutionError,
    SourceNotFoundError,
    TemplateNotFoundError,
    WriteError,
)
from tmplcache.models import CompiledTemplate
from tmplcache.templates.loader import TemplateLoader
from tmplcache.templates.store import TemplateStore

logger = logging.getLogger(__name__)


def build_context(payload: Any) -> dict[str, Any]:
    """Turn a render payload into a template context mapping.

    Args:
        payload: Mapping, dataclass instance, object with to_dict(), None,
            or any object with instance attributes

    Returns:
        Context dictionary whose keys become template variables

    Raises:
        TypeError: If the payload exposes no usable fields
    """
    if payload is None:
        return {}
    if isinstance(payload, Mapping):
        return {str(k): v for k, v in payload.items()}
    if hasattr(payload, "to_dict") and callable(payload.to_dict):
        return dict(payload.to_dict())
    if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        # Shallow: nested values stay the caller's objects
        return {f.name: getattr(payload, f.name) for f in dataclasses.fields(payload)}
    try:
        return dict(vars(payload))
    except TypeError:
        raise TypeError(
            f"Unsupported payload type for template context: {type(payload).__name__}"
        ) from None


def _write_all(sink: io.RawIOBase, data: bytes) -> None:
    """Write every byte to a raw stream, which may accept only part of a write."""
    view = memoryview(data)
    while view:
        written = sink.write(view)
        if not written:
            raise OSError(f"Sink accepted no data with {len(view)} byte(s) remaining")
        view = view[written:]


def _replace_file(path: Path, text: str) -> None:
    """Write text to a sibling temp file, then move it over path."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class TemplateRenderer:
    """Renders named templates, reusing compiled templates when caching is on.

    Usage:
        renderer = TemplateRenderer(TemplateLoader.from_directory("templates"))
        renderer.render(response, "home.page.tmpl", TemplateData())
    """

    def __init__(
        self,
        loader: TemplateLoader,
        store: TemplateStore | None = None,
        use_cache: bool = True,
    ) -> None:
        """Initialize the renderer.

        Args:
            loader: Builds compiled templates from the backing source
            store: Store for compiled templates (a fresh one if None)
            use_cache: Reuse compiled templates (True) or rebuild on every
                render (False)
        """
        self.loader = loader
        self.store = store if store is not None else TemplateStore()
        self._use_cache = use_cache

    @classmethod
    def from_config(cls, config: AppConfig) -> "TemplateRenderer":
        """Wire loader, store and renderer from application configuration."""
        tc = config.templates
        options: dict[str, Any] = {
            "page_pattern": tc.page_pattern,
            "layout_pattern": tc.layout_pattern,
            "autoescape": tc.autoescape,
        }
        if tc.package:
            loader = TemplateLoader.from_package(tc.package, tc.directory, **options)
        else:
            loader = TemplateLoader.from_directory(Path(tc.directory), **options)
        return cls(loader, TemplateStore(), use_cache=config.use_cache)

    # =========================================================================
    # Cache policy
    # =========================================================================

    @property
    def use_cache(self) -> bool:
        """Whether compiled templates are reused between renders."""
        return self._use_cache

    def set_cache_policy(self, use_cache: bool) -> None:
        """Switch between caching and reloading.

        Any actual change clears the store so no template compiled under the
        previous policy is served afterwards.
        """
        if use_cache == self._use_cache:
            return
        self.store.reset()
        self._use_cache = use_cache
        logger.debug("Template cache %s", "enabled" if use_cache else "disabled")

    # =========================================================================
    # Rendering
    # =========================================================================

    def get_template(self, name: str) -> CompiledTemplate:
        """Get the compiled template for name according to the cache policy.

        Raises:
            TemplateNotFoundError: If the page cannot be resolved
            SourceNotFoundError: If a layout or referenced fragment is missing
            TemplateSyntaxError: If any fragment fails to parse
        """
        try:
            if self._use_cache:
                return self.store.populate(name, partial(self.loader.load, name))
            return self.loader.load(name)
        except SourceNotFoundError as e:
            if e.identifier == name:
                raise TemplateNotFoundError(name) from e
            raise

    def render_string(self, name: str, payload: Any = None) -> str:
        """Render a template to a string.

        Args:
            name: Template name
            payload: Data exposed to the template

        Returns:
            Rendered output

        Raises:
            TemplateNotFoundError, SourceNotFoundError, TemplateSyntaxError:
                If the template cannot be built
            ExecutionError: If executing the template against payload fails
        """
        compiled = self.get_template(name)

        try:
            context = build_context(payload)
            buffer = io.StringIO()
            for chunk in compiled.generate(context):
                buffer.write(chunk)
        except Exception as e:
            raise ExecutionError(name, str(e)) from e

        return buffer.getvalue()

    def render(self, sink: Any, name: str, payload: Any = None) -> None:
        """Render a template and write it to sink.

        Nothing is written unless the whole template executed successfully.

        Args:
            sink: Writable text stream, or binary stream (receives UTF-8)
            name: Template name
            payload: Data exposed to the template

        Raises:
            TemplateNotFoundError, SourceNotFoundError, TemplateSyntaxError:
                If the template cannot be built
            ExecutionError: If executing the template against payload fails
            WriteError: If the sink rejects the output
        """
        output = self.render_string(name, payload)

        try:
            if isinstance(sink, io.RawIOBase):
                _write_all(sink, output.encode("utf-8"))
            elif isinstance(sink, io.BufferedIOBase):
                sink.write(output.encode("utf-8"))
            else:
                sink.write(output)
        except (OSError, ValueError, TypeError) as e:
            raise WriteError(name, str(e)) from e

        logger.debug("Rendered %s (%d characters)", name, len(output))

    def render_to_file(
        self,
        name: str,
        output_path: Path,
        payload: Any = None,
    ) -> Path:
        """Render a template and write it to a file.

        The file is only created once rendering has succeeded, and is swapped
        into place whole, so an existing file is never left half-written.

        Args:
            name: Template name
            output_path: Path to write
            payload: Data exposed to the template

        Returns:
            Path to written file
        """
        output = self.render_string(name, payload)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            _replace_file(output_path, output)
        except OSError as e:
            raise WriteError(name, str(e)) from e

        logger.info("Wrote %s to %s", name, output_path)
        return output_path

    def preload(self) -> list[str]:
        """Build every page of the backing source.

        Under the cache policy the pages are stored; otherwise they are only
        compiled, which validates them. Stops at the first failure; pages
        built before it stay stored.

        Returns:
            Names of the pages built
        """
        pages = self.loader.list_pages()
        for name in pages:
            self.get_template(name)
        logger.info(
            "%s %d template(s)",
            "Cached" if self._use_cache else "Validated",
            len(pages),
        )
        return pages
