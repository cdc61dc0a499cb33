"""Smoke-check imports for the public modules of the package."""

from __future__ import annotations

from importlib import import_module
from types import ModuleType

import pytest

MODULES_AND_SYMBOLS = [
    ("clipvault.app", "create_app"),
    ("clipvault.config", "AppConfig"),
    ("clipvault.dependencies", "include_routers"),
    ("clipvault.exceptions", "ClipVaultError"),
    ("clipvault.lifecycle", "run_periodic_sweep"),
    ("clipvault.logging", "configure_logging"),
    ("clipvault.media", "ContentIndex"),
    ("clipvault.media", "LifecycleReconciler"),
    ("clipvault.media.media_digest", "compute_digest"),
    ("clipvault.media.media_models", "BlobEntry"),
    ("clipvault.api.errors", "error_from_domain"),
    ("clipvault.auth.auth_dependencies", "require_api_key"),
    ("clipvault.files.files_api", "router"),
    ("clipvault.uploads.upload_api", "router"),
    ("clipvault.uploads.validation", "UploadValidator"),
    ("clipvault.utils.display", "display_iso"),
]


@pytest.mark.parametrize(("module_name", "symbol"), MODULES_AND_SYMBOLS)
def test_importable_symbols(module_name: str, symbol: str) -> None:
    """Import modules and verify that public symbols are exposed."""

    module: ModuleType = import_module(module_name)
    assert hasattr(module, symbol), f"{module_name} missing {symbol}"
