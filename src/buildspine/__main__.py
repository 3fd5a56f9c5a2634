"""Entry point for ``python -m buildspine``."""

from buildspine.cli.app import app

app()
