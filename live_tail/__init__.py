"""Live tail session supervisor."""

from .version import __version__  # noqa: F401
