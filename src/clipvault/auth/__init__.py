"""API-key gate for administrative endpoints."""

from .auth_dependencies import require_api_key

__all__ = ["require_api_key"]
