"""Interfaces and basic implementations for secret resolution."""

from __future__ import annotations

from abc import ABC, abstractmethod
from configparser import ConfigParser
from pathlib import Path
from typing import Iterable, Mapping

# Secret keys use ``section.option`` form; the env provider maps them to
# upper-case variable names via ``ENV_ALIASES`` first.
SEARCH_API_KEY = "serpapi.key"
GEMINI_API_KEY = "gemini.api_key"

ENV_ALIASES: dict[str, str] = {
    SEARCH_API_KEY: "SERPAPI_KEY",
    GEMINI_API_KEY: "GEMINI_API_KEY",
}


class SecretNotFoundError(KeyError):
    """Raised when a secret cannot be resolved."""


class SecretProvider(ABC):
    """Abstract secret lookup contract."""

    @abstractmethod
    def get_secret(self, key: str) -> str:
        """Return the secret associated with ``key``."""

    def lookup(self, key: str) -> str | None:
        """Return the secret or ``None`` when it is not configured."""
        try:
            value = self.get_secret(key)
        except SecretNotFoundError:
            return None
        return value.strip() or None


class EnvSecretProvider(SecretProvider):
    """Reads secrets from process environment variables."""

    def __init__(
        self,
        *,
        aliases: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        if environ is None:
            from os import environ as process_env

            environ = process_env
        self._env = environ
        self._aliases = dict(ENV_ALIASES if aliases is None else aliases)

    def get_secret(self, key: str) -> str:
        name = self._aliases.get(key) or key.upper().replace(".", "_")
        value = self._env.get(name)
        if not value:
            raise SecretNotFoundError(name)
        return value


class FileSecretProvider(SecretProvider):
    """Loads secrets from INI-style files (``[serpapi] key = ...``)."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._parser = ConfigParser()
        if path.exists():
            self._parser.read(path, encoding="utf-8")

    def get_secret(self, key: str) -> str:
        section, _, option = key.partition(".")
        if not section or not option:
            raise SecretNotFoundError(key)
        if self._parser.has_option(section, option):
            value = self._parser.get(section, option)
            if value:
                return value
        raise SecretNotFoundError(key)


class MappingSecretProvider(SecretProvider):
    """Wraps a simple dictionary for testing."""

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping = mapping

    def get_secret(self, key: str) -> str:
        try:
            return self._mapping[key]
        except KeyError as exc:
            raise SecretNotFoundError(key) from exc


class ChainedSecretProvider(SecretProvider):
    """Tries multiple providers until one returns a secret."""

    def __init__(self, providers: Iterable[SecretProvider]) -> None:
        self._providers = tuple(providers)

    def get_secret(self, key: str) -> str:
        for provider in self._providers:
            try:
                return provider.get_secret(key)
            except SecretNotFoundError:
                continue
        raise SecretNotFoundError(key)


def default_secret_provider(secrets_file: Path | None = None) -> SecretProvider:
    """Environment variables first, then the optional INI secrets file."""
    providers: list[SecretProvider] = [EnvSecretProvider()]
    if secrets_file is not None:
        providers.append(FileSecretProvider(secrets_file))
    return ChainedSecretProvider(providers)


__all__ = [
    "ChainedSecretProvider",
    "EnvSecretProvider",
    "FileSecretProvider",
    "GEMINI_API_KEY",
    "MappingSecretProvider",
    "SEARCH_API_KEY",
    "SecretNotFoundError",
    "SecretProvider",
    "default_secret_provider",
]
