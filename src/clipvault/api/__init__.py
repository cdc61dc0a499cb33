"""Shared plumbing for the HTTP routers."""

from .dependencies import get_app_config, get_content_index, get_upload_validator
from .errors import error_from_domain, http_error

__all__ = [
    "error_from_domain",
    "get_app_config",
    "get_content_index",
    "get_upload_validator",
    "http_error",
]
