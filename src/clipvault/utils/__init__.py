"""Small presentation helpers shared by the HTTP adapters."""

from .display import display_iso, guess_mime

__all__ = ["display_iso", "guess_mime"]
