"""Security utilities package."""

from __future__ import annotations

from .credential_provider import (
    GEMINI_API_KEY,
    SEARCH_API_KEY,
    ChainedSecretProvider,
    MappingSecretProvider,
    SecretProvider,
    default_secret_provider,
)

__all__ = [
    "ChainedSecretProvider",
    "GEMINI_API_KEY",
    "MappingSecretProvider",
    "SEARCH_API_KEY",
    "SecretProvider",
    "default_secret_provider",
]
