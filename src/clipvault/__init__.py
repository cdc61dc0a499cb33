"""ClipVault: a deduplicating, content-addressed video store."""

__version__ = "0.1.0"
