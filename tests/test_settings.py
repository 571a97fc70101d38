from __future__ import annotations

from pathlib import Path

import pytest

from enrich.security.credential_provider import (
    GEMINI_API_KEY,
    SEARCH_API_KEY,
    ChainedSecretProvider,
    EnvSecretProvider,
    FileSecretProvider,
    MappingSecretProvider,
)
from enrich.settings import load_config


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        body
        + f"""
[paths]
data_dir = "{(tmp_path / 'data').as_posix()}"
secrets_file = "{(tmp_path / 'secrets.ini').as_posix()}"
""",
        encoding="utf-8",
    )
    return path


def test_defaults_apply_when_sections_missing(tmp_path: Path) -> None:
    config = load_config(_write_config(tmp_path, ""))

    assert config.http.timeout == 15
    assert config.http.max_redirects == 5
    assert config.search.num_results == 10
    assert config.search.max_candidates == 2
    assert "youtube.com" in config.search.excluded_domains
    assert config.rewrite.model == "gemini-2.0-flash"
    assert config.rewrite.max_output_tokens == 8192
    assert config.batch.max_batch_size == 10
    assert config.batch.max_enhance_all == 20
    assert config.paths.store_path == tmp_path / "data" / "articles.json"
    assert (tmp_path / "data").is_dir()


def test_sections_override_defaults(tmp_path: Path) -> None:
    body = """
[http]
timeout = 5

[search]
excluded_domains = "example.com, Other.org"
max_candidates = 3

[rewrite]
model = "gemini-2.5-pro"
temperature = 0.2

[batch]
max_batch_size = 4
"""
    config = load_config(_write_config(tmp_path, body))

    assert config.http.timeout == 5
    assert config.search.timeout == 5
    assert config.search.excluded_domains == ("example.com", "other.org")
    assert config.search.max_candidates == 3
    assert config.rewrite.model == "gemini-2.5-pro"
    assert config.rewrite.temperature == pytest.approx(0.2)
    assert config.batch.max_batch_size == 4


def test_env_var_selects_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write_config(tmp_path, "[batch]\nmax_enhance_all = 7\n")
    monkeypatch.setenv("ENRICH_CONFIG", str(path))
    assert load_config().batch.max_enhance_all == 7


def test_explicit_missing_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")


def test_env_provider_uses_aliases() -> None:
    provider = EnvSecretProvider(environ={"SERPAPI_KEY": "serp", "GEMINI_API_KEY": "  "})
    assert provider.lookup(SEARCH_API_KEY) == "serp"
    assert provider.lookup(GEMINI_API_KEY) is None


def test_file_provider_reads_ini_sections(tmp_path: Path) -> None:
    secrets = tmp_path / "secrets.ini"
    secrets.write_text("[gemini]\napi_key = from-file\n", encoding="utf-8")
    provider = FileSecretProvider(secrets)
    assert provider.lookup(GEMINI_API_KEY) == "from-file"
    assert provider.lookup(SEARCH_API_KEY) is None


def test_chained_provider_prefers_first_match(tmp_path: Path) -> None:
    chained = ChainedSecretProvider(
        [
            EnvSecretProvider(environ={}),
            MappingSecretProvider({GEMINI_API_KEY: "mapped"}),
        ]
    )
    assert chained.lookup(GEMINI_API_KEY) == "mapped"
    assert chained.lookup(SEARCH_API_KEY) is None
