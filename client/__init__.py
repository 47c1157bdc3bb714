"""Configuration, Workers API SDK and CLI for live-tail."""

from live_tail.version import __version__

__all__ = ["__version__"]
