"""Error taxonomy for template loading and rendering.

Every error raised by the rendering subsystem derives from TemplateError so
callers (HTTP handlers, the CLI) can translate failures with a single except
clause. None of these errors is fatal to the process: a failure affects
exactly one render call.
"""


class TemplateError(Exception):
    """Base class for all template subsystem errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SourceNotFoundError(TemplateError):
    """Raised when a template fragment cannot be read from its backing source."""

    def __init__(self, identifier: str, message: str | None = None) -> None:
        self.identifier = identifier
        super().__init__(message or f"Template source not found: {identifier}")


class TemplateSyntaxError(TemplateError):
    """Raised when a template fragment contains malformed markup."""

    def __init__(
        self,
        fragment: str,
        message: str,
        lineno: int | None = None,
    ) -> None:
        self.fragment = fragment
        self.lineno = lineno
        location = f"{fragment}:{lineno}" if lineno is not None else fragment
        super().__init__(f"Syntax error in {location}: {message}")
        # Keep the bare parser message for callers that format their own output
        self.message = message


class TemplateNotFoundError(TemplateError):
    """Raised when a requested template is neither stored nor resolvable."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template not found: {name}")


class ExecutionError(TemplateError):
    """Raised when executing a template against its payload fails."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Template execution failed: {name} - {message}")


class WriteError(TemplateError):
    """Raised when the output sink rejects the rendered output."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Failed to write rendered template: {name} - {message}")
