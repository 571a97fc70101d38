"""Helpers for loading configuration and static settings."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import tomllib

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_NAME = "config.toml"
CONFIG_ENV_VAR = "ENRICH_CONFIG"
DEFAULT_HEADERS_PATH = Path(__file__).with_name("default_headers.json")

DEFAULT_EXCLUDED_DOMAINS: tuple[str, ...] = (
    "youtube.com",
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "pinterest.com",
    "reddit.com",
    "tiktok.com",
)

DEFAULT_SYSTEM_INSTRUCTION = "You are a professional content writer and SEO expert."


@dataclass(slots=True)
class HttpSettings:
    timeout: float = 15.0
    max_redirects: int = 5


@dataclass(slots=True)
class SearchSettings:
    endpoint: str = "https://serpapi.com/search"
    engine: str = "google"
    num_results: int = 10
    gl: str = "us"
    hl: str = "en"
    max_candidates: int = 2
    timeout: float = 15.0
    excluded_domains: tuple[str, ...] = DEFAULT_EXCLUDED_DOMAINS


@dataclass(slots=True)
class RewriteSettings:
    model: str = "gemini-2.0-flash"
    temperature: float = 0.7
    top_p: float = 0.95
    max_output_tokens: int = 8192
    reference_preview_chars: int = 2000
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION


@dataclass(slots=True)
class BatchSettings:
    max_batch_size: int = 10
    max_enhance_all: int = 20


@dataclass(slots=True)
class PathSettings:
    data_dir: Path
    store_path: Path
    secrets_file: Path


@dataclass(slots=True)
class AppConfig:
    http: HttpSettings
    search: SearchSettings
    rewrite: RewriteSettings
    batch: BatchSettings
    paths: PathSettings
    extra: dict[str, Any] = field(default_factory=dict)


def _to_path(value: str | None, *, fallback: Path) -> Path:
    if not value:
        return fallback
    candidate = Path(value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _config_path(explicit: str | os.PathLike[str] | None = None) -> tuple[Path, bool]:
    """Return the config path and whether the caller asked for it explicitly."""
    if explicit:
        candidate, required = Path(explicit), True
    else:
        env_value = os.environ.get(CONFIG_ENV_VAR)
        if env_value:
            candidate, required = Path(env_value), True
        else:
            candidate, required = PROJECT_ROOT / DEFAULT_CONFIG_NAME, False
    resolved = candidate if candidate.is_absolute() else PROJECT_ROOT / candidate
    return resolved, required


def _load_toml(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Config file not found: {path}")
        return {}
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _ensure_directories(paths: Iterable[Path]) -> None:
    for directory in paths:
        directory.mkdir(parents=True, exist_ok=True)


def _domains(value: Any) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_EXCLUDED_DOMAINS
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(item).strip().lower() for item in value if str(item).strip())


def _build_search(section: dict[str, Any], http: HttpSettings) -> SearchSettings:
    defaults = SearchSettings()
    return SearchSettings(
        endpoint=str(section.get("endpoint", defaults.endpoint)),
        engine=str(section.get("engine", defaults.engine)),
        num_results=int(section.get("num_results", defaults.num_results)),
        gl=str(section.get("gl", defaults.gl)),
        hl=str(section.get("hl", defaults.hl)),
        max_candidates=int(section.get("max_candidates", defaults.max_candidates)),
        timeout=float(section.get("timeout", http.timeout)),
        excluded_domains=_domains(section.get("excluded_domains")),
    )


def _build_rewrite(section: dict[str, Any]) -> RewriteSettings:
    defaults = RewriteSettings()
    return RewriteSettings(
        model=str(section.get("model") or defaults.model),
        temperature=float(section.get("temperature", defaults.temperature)),
        top_p=float(section.get("top_p", defaults.top_p)),
        max_output_tokens=int(section.get("max_output_tokens", defaults.max_output_tokens)),
        reference_preview_chars=int(
            section.get("reference_preview_chars", defaults.reference_preview_chars)
        ),
        system_instruction=str(section.get("system_instruction") or defaults.system_instruction),
    )


def load_config(config_path: str | os.PathLike[str] | None = None) -> AppConfig:
    path, required = _config_path(config_path)
    data = _load_toml(path, required=required)

    http_section = data.get("http", {})
    paths_section = data.get("paths", {})
    batch_section = data.get("batch", {})

    data_dir = _to_path(paths_section.get("data_dir"), fallback=PROJECT_ROOT / "data")
    store_path = _to_path(paths_section.get("store_path"), fallback=data_dir / "articles.json")
    secrets_file = _to_path(paths_section.get("secrets_file"), fallback=PROJECT_ROOT / "secrets.ini")
    _ensure_directories((data_dir, store_path.parent))

    http_settings = HttpSettings(
        timeout=float(http_section.get("timeout", 15)),
        max_redirects=int(http_section.get("max_redirects", 5)),
    )

    recognised = {"http", "search", "rewrite", "batch", "paths"}
    return AppConfig(
        http=http_settings,
        search=_build_search(data.get("search", {}), http_settings),
        rewrite=_build_rewrite(data.get("rewrite", {})),
        batch=BatchSettings(
            max_batch_size=int(batch_section.get("max_batch_size", 10)),
            max_enhance_all=int(batch_section.get("max_enhance_all", 20)),
        ),
        paths=PathSettings(data_dir=data_dir, store_path=store_path, secrets_file=secrets_file),
        extra={k: v for k, v in data.items() if k not in recognised},
    )


def load_default_headers() -> dict[str, str]:
    path = DEFAULT_HEADERS_PATH
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        data = json.load(fp)
    return {str(key): str(value) for key, value in data.items()}


def project_path(*parts: Any) -> Path:
    return PROJECT_ROOT.joinpath(*parts)
