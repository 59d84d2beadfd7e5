"""Thread-safe store of compiled templates.

The store is the single source of truth for which compiled templates exist.
It is constructed explicitly and handed to the renderer; there is no
module-level cache.

Concurrency:
    A plain lock guards the name -> template mapping. Builds run outside
    that lock. Each absent name gets its own build lock, so when several
    threads request the same absent name at once, one of them builds and
    the others block until it finishes, then reuse the stored result.
    Builds for different names proceed in parallel.
"""

import logging
import threading
from collections.abc import Callable

from tmplcache.models import CompiledTemplate

logger = logging.getLogger(__name__)


class TemplateStore:
    """Mapping of template name to CompiledTemplate with get-or-populate.

    Usage:
        store = TemplateStore()
        compiled = store.populate("home.page.tmpl", lambda: loader.load("home.page.tmpl"))
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._templates: dict[str, CompiledTemplate] = {}
        self._build_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        # Bumped by reset() so builds started before a reset are not inserted
        self._generation = 0

    def get(self, name: str) -> CompiledTemplate | None:
        """Look up a compiled template.

        Args:
            name: Template name

        Returns:
            The stored CompiledTemplate, or None if absent
        """
        with self._lock:
            return self._templates.get(name)

    def populate(
        self,
        name: str,
        loader_fn: Callable[[], CompiledTemplate],
    ) -> CompiledTemplate:
        """Return the stored template for name, building it on first use.

        Args:
            name: Template name
            loader_fn: Zero-argument callable that builds the template

        Returns:
            The authoritative CompiledTemplate for name

        Raises:
            Whatever loader_fn raises. A failed build leaves the store untouched.
        """
        with self._lock:
            cached = self._templates.get(name)
            if cached is not None:
                logger.debug("Using cached template %s", name)
                return cached
            build_lock = self._build_locks.setdefault(name, threading.Lock())

        with build_lock:
            # Another thread may have finished the build while we waited
            with self._lock:
                cached = self._templates.get(name)
                if cached is not None:
                    logger.debug("Using template %s built by another thread", name)
                    return cached
                generation = self._generation

            logger.debug("Creating template %s and adding to store", name)
            try:
                compiled = loader_fn()
            except BaseException:
                # Threads already waiting on build_lock retry under it
                with self._lock:
                    self._release_build_lock(name, build_lock)
                raise

            with self._lock:
                if generation != self._generation:
                    logger.debug("Store was reset while building %s; not storing", name)
                    return compiled
                self._templates[name] = compiled
                self._release_build_lock(name, build_lock)
            return compiled

    def _release_build_lock(self, name: str, build_lock: threading.Lock) -> None:
        # Caller holds self._lock. A reset may already have replaced the entry.
        if self._build_locks.get(name) is build_lock:
            del self._build_locks[name]

    def reset(self) -> None:
        """Remove every stored template."""
        with self._lock:
            self._templates.clear()
            self._build_locks.clear()
            self._generation += 1
        logger.debug("Template store reset")

    def names(self) -> list[str]:
        """Return the names of stored templates, sorted."""
        with self._lock:
            return sorted(self._templates)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._templates

    def __len__(self) -> int:
        with self._lock:
            return len(self._templates)
