"""Slack channels, history and threads served as Model Context Protocol tools."""

__version__ = "1.1.15"
__all__ = ["__version__"]