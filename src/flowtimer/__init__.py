"""Flow timer - a persistent focus/break interval timer."""

__version__ = "0.1.0"
