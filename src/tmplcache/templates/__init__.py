"""tmplcache template pipeline.

- loader: Compiles pages with their shared layout fragments
- store: Thread-safe get-or-populate store of compiled templates
- renderer: Buffer-then-flush rendering to an output sink
"""

from tmplcache.templates.loader import TemplateLoader
from tmplcache.templates.renderer import TemplateRenderer, build_context
from tmplcache.templates.store import TemplateStore

__all__ = ["TemplateLoader", "TemplateRenderer", "TemplateStore", "build_context"]
