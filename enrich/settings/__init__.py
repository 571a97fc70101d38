"""Settings package exports."""

from .loader import (
    AppConfig,
    BatchSettings,
    HttpSettings,
    PathSettings,
    RewriteSettings,
    SearchSettings,
    load_config,
    load_default_headers,
    project_path,
)

__all__ = [
    "AppConfig",
    "BatchSettings",
    "HttpSettings",
    "PathSettings",
    "RewriteSettings",
    "SearchSettings",
    "load_config",
    "load_default_headers",
    "project_path",
]
