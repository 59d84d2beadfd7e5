"""tmplcache - Template cache and rendering pipeline.

Parses page templates together with shared layout fragments, keeps the
compiled result keyed by name for reuse, and renders a named template with a
data payload to an output sink.

Core guarantees:
- At most one build per template name under concurrent first requests
- A failed build never poisons the cache
- All-or-nothing output: a failing render writes nothing to the sink
"""

from tmplcache.errors import (
    ExecutionError,
    SourceNotFoundError,
    TemplateError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    WriteError,
)
from tmplcache.models import CompiledTemplate, TemplateData
from tmplcache.templates import TemplateLoader, TemplateRenderer, TemplateStore

__version__ = "0.1.0"

__all__ = [
    "CompiledTemplate",
    "ExecutionError",
    "SourceNotFoundError",
    "TemplateData",
    "TemplateError",
    "TemplateLoader",
    "TemplateNotFoundError",
    "TemplateRenderer",
    "TemplateStore",
    "TemplateSyntaxError",
    "WriteError",
]
