"""AssetMap: multi-platform internet asset search console."""

__version__ = "0.1.0"
