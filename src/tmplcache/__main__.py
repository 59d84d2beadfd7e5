"""Entry point for running tmplcache as a module.

Usage:
    python -m tmplcache [command] [options]

Example:
    python -m tmplcache render home.page.tmpl --data data.yaml
    python -m tmplcache validate
"""

from tmplcache.cli import app

if __name__ == "__main__":
    app()
