"""Console utilities for the Flow timer CLI."""

from functools import lru_cache

from rich.console import Console


@lru_cache(maxsize=1)
def get_console() -> Console:
    """Shared Rich Console; highlighting off so timer digits keep their styles."""
    return Console(highlight=False)
