"""tmplcache CLI interface.

Commands:
- render: Render a page template with a YAML/JSON data file
- list: List page and layout templates of the configured source
- validate: Compile templates and report syntax errors
- init: Initialize configuration and sample templates

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import sys
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from tmplcache import __version__
from tmplcache.config import AppConfig, create_default_config, load_config
from tmplcache.errors import SourceNotFoundError, TemplateError, TemplateSyntaxError
from tmplcache.templates import TemplateRenderer
from tmplcache.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="tmplcache",
    help="Render page templates through a compiled-template cache",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: AppConfig | None = None
_logger = get_logger("cli")

SAMPLE_LAYOUT = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{% block title %}{% endblock %}</title>
</head>
<body>
{% block content %}{% endblock %}
</body>
</html>
"""

SAMPLE_PAGE = """{% extends "base.layout.tmpl" %}
{% block title %}Home{% endblock %}
{% block content %}
<h1>This is the home page</h1>
{% if flash is defined and flash %}
<p class="flash">{{ flash }}</p>
{% endif %}
{% endblock %}
"""


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tmplcache {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """tmplcache - Template cache and rendering pipeline.

    Compiles page templates with their shared layouts and renders them with
    data. Rendered output goes to stdout, logs to stderr.
    """
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except (ValueError, yaml.YAMLError) as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


def _create_renderer(use_cache: bool | None = None) -> TemplateRenderer:
    """Build a renderer from the loaded config, exiting on bad template settings."""
    config = _config or AppConfig()
    try:
        renderer = TemplateRenderer.from_config(config)
    except (ValueError, ImportError) as e:
        _logger.error(f"Cannot open template source: {e}")
        raise typer.Exit(1)

    if use_cache is not None:
        renderer.set_cache_policy(use_cache)
    return renderer


def _load_payload(data: Path | None) -> dict[str, Any] | None:
    """Read a YAML or JSON data file into a mapping."""
    if data is None:
        return None

    try:
        payload = yaml.safe_load(data.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        _logger.error(f"Failed to read data file {data}: {e}")
        raise typer.Exit(1)

    if payload is None:
        return None
    if not isinstance(payload, dict):
        _logger.error(f"Data file must contain a mapping, got {type(payload).__name__}")
        raise typer.Exit(1)
    return payload


# =============================================================================
# render command
# =============================================================================


@app.command()
def render(
    name: Annotated[
        str,
        typer.Argument(help="Template name, e.g. home.page.tmpl"),
    ],
    data: Annotated[
        Path | None,
        typer.Option(
            "--data",
            "-d",
            help="YAML or JSON file with the template data",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write to this file instead of stdout",
        ),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option(
            "--no-cache",
            help="Rebuild the template from source (overrides config)",
        ),
    ] = False,
) -> None:
    """Render a template.

    Exit codes:
        0: Rendered successfully
        1: Template missing, invalid, or failed to execute
    """
    payload = _load_payload(data)
    renderer = _create_renderer(use_cache=False if no_cache else None)

    try:
        if output is not None:
            renderer.render_to_file(name, output, payload)
            typer.echo(f"📄 Rendered {name} to: {output}")
        else:
            renderer.render(sys.stdout, name, payload)
    except TemplateError as e:
        _logger.error(str(e))
        raise typer.Exit(1)


# =============================================================================
# list command
# =============================================================================


@app.command("list")
def list_templates() -> None:
    """List page and layout templates of the configured source."""
    renderer = _create_renderer()
    pages = renderer.loader.list_pages()
    layouts = renderer.loader.list_layouts()

    typer.echo("Pages:")
    for page in pages:
        typer.echo(f"  {page}")
    if not pages:
        typer.echo("  (none)")

    typer.echo("Layouts:")
    for layout in layouts:
        typer.echo(f"  {layout}")
    if not layouts:
        typer.echo("  (none)")


# =============================================================================
# validate command
# =============================================================================


@app.command()
def validate(
    name: Annotated[
        str | None,
        typer.Argument(help="Template to validate (default: every page)"),
    ] = None,
) -> None:
    """Compile templates and report syntax errors.

    Exit codes:
        0: Every template compiled
        1: At least one template failed, or no templates were found
    """
    renderer = _create_renderer()
    names = [name] if name else renderer.loader.list_pages()

    if not names:
        _logger.error("No page templates found")
        raise typer.Exit(1)

    failures = 0
    for template_name in names:
        _logger.debug(f"Validating template: {template_name}")
        try:
            renderer.loader.load(template_name)
        except TemplateSyntaxError as e:
            failures += 1
            line = f" at line {e.lineno}" if e.lineno is not None else ""
            typer.echo(f"❌ {template_name}: syntax error in {e.fragment}{line}: {e.message}")
        except SourceNotFoundError as e:
            failures += 1
            typer.echo(f"❌ {template_name}: {e.message}")
        else:
            typer.echo(f"✅ {template_name}")

    if failures:
        _logger.error(f"{failures} of {len(names)} template(s) failed validation")
        raise typer.Exit(1)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize tmplcache configuration.

    Creates .tmplcache/config.yaml and a templates directory with a sample
    layout and page. Existing templates are never overwritten.
    """
    config_dir = Path(".tmplcache")
    config_dir.mkdir(exist_ok=True)
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    templates_dir = Path("templates")
    templates_dir.mkdir(exist_ok=True)
    for filename, content in (
        ("base.layout.tmpl", SAMPLE_LAYOUT),
        ("home.page.tmpl", SAMPLE_PAGE),
    ):
        path = templates_dir / filename
        if not path.exists():
            path.write_text(content, encoding="utf-8")
            _logger.info(f"Created sample template: {path}")

    typer.echo("\n✅ tmplcache initialized")
    typer.echo(f"   Config: {config_file}")
    typer.echo(f"   Templates: {templates_dir}/")


if __name__ == "__main__":
    app()
