"""Shared pytest fixtures for tmplcache tests.

Fixtures are organized by category:
- Path fixtures: Template directories on disk
- Loader fixtures: In-memory and counting loaders
- Logging fixtures: Reset handlers installed by CLI tests
"""

import logging
import shutil
import threading
from collections.abc import Callable
from pathlib import Path

import jinja2
import pytest

from tmplcache.models import CompiledTemplate
from tmplcache.templates import TemplateLoader

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def templates_dir(fixtures_dir: Path) -> Path:
    """Return the path to the read-only template fixtures."""
    return fixtures_dir / "templates"


@pytest.fixture
def temp_templates(tmp_path: Path, templates_dir: Path) -> Path:
    """Copy the template fixtures to a writable directory."""
    target = tmp_path / "templates"
    shutil.copytree(templates_dir, target)
    return target


# =============================================================================
# Loader Fixtures
# =============================================================================


SITE_TEMPLATES: dict[str, str] = {
    "base.layout.tmpl": (
        "<main>{% block content %}{% endblock %}</main>"
        "{% block footer %}<footer>site</footer>{% endblock %}"
    ),
    "home.page.tmpl": (
        '{% extends "base.layout.tmpl" %}'
        "{% block content %}Hello {{ name }}{% endblock %}"
    ),
    "list.page.tmpl": (
        '{% extends "base.layout.tmpl" %}'
        "{% block content %}{% for item in items %}[{{ item }}]{% endfor %}{% endblock %}"
    ),
}


class CountingLoader(TemplateLoader):
    """TemplateLoader that counts load() calls and can delay each build."""

    def __init__(self, *args, delay: float = 0.0, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.delay = delay
        self.load_count = 0
        self.loaded: list[str] = []
        self._count_lock = threading.Lock()

    def load(self, name: str) -> CompiledTemplate:
        with self._count_lock:
            self.load_count += 1
            self.loaded.append(name)
        if self.delay:
            threading.Event().wait(self.delay)
        return super().load(name)


@pytest.fixture
def site_templates() -> dict[str, str]:
    """Return a copy of the in-memory site templates."""
    return dict(SITE_TEMPLATES)


@pytest.fixture
def memory_loader(site_templates: dict[str, str]) -> TemplateLoader:
    """Create a loader over the in-memory site templates."""
    return TemplateLoader.from_mapping(site_templates)


@pytest.fixture
def make_counting_loader(
    site_templates: dict[str, str],
) -> Callable[..., CountingLoader]:
    """Return a factory for counting loaders (site templates by default)."""

    def factory(
        mapping: dict[str, str] | None = None,
        delay: float = 0.0,
    ) -> CountingLoader:
        source = jinja2.DictLoader(site_templates if mapping is None else mapping)
        return CountingLoader(source, delay=delay)

    return factory


@pytest.fixture
def counting_loader(make_counting_loader: Callable[..., CountingLoader]) -> CountingLoader:
    """Create a counting loader over the in-memory site templates."""
    return make_counting_loader()


# =============================================================================
# Logging Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_tmplcache_logging():
    """Drop handlers the CLI attaches so later tests log normally."""
    yield
    logger = logging.getLogger("tmplcache")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
