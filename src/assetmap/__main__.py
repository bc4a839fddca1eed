"""Allow ``python -m assetmap``."""

from assetmap.cli import app

app()
