# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Single-object interface over key management and token signing."""

from collections.abc import Mapping
from typing import Any

from .config import AuthConfig
from .key_manager import KeyManager
from .process import ProcessRunner
from .token_service import TokenService


class Auth:
    """Owns a key pair and signs/verifies tokens with it.

    Example:
        >>> auth = Auth({"jwt": {"expiresIn": "2 days"}})
        >>> await auth.generate()
        >>> token = auth.sign({"t": 1700000000000})
        >>> auth.verify(token)["t"]
        1700000000000
    """

    def __init__(
        self,
        config: AuthConfig | Mapping[str, Any] | None = None,
        runner: ProcessRunner | None = None,
    ):
        """Initialize from an AuthConfig or an option mapping.

        Args:
            config: AuthConfig, or a mapping with optional ``jwt``,
                ``keygen``, ``openssl``, ``private`` and ``public`` entries.
                Anything else falls back to defaults.
            runner: Process runner for the key tools
        """
        if not isinstance(config, AuthConfig):
            config = AuthConfig.from_options(config)
        self.config = config
        self.keys = KeyManager(config.keys, runner=runner)
        self.tokens = TokenService(self.keys, config.signing)

    async def generate(self, overwrite: bool = False, both: bool = False) -> None:
        """Generate or load keys.

        Args:
            overwrite: Regenerate the public key even if keys exist
            both: With overwrite, regenerate the private key too
        """
        await self.keys.ensure_keys(overwrite=overwrite, regenerate_both_on_overwrite=both)

    def key(self, private: bool = False) -> str | None:
        """Return cached PEM content of the private or public key."""
        return self.keys.private_key if private else self.keys.public_key

    def sign(self, claims: Mapping[str, Any]) -> str:
        """Sign a claim set with the cached private key."""
        return self.tokens.sign(claims)

    def verify(self, token: str) -> dict[str, Any]:
        """Verify a token with the cached public key and return its claims."""
        return self.tokens.verify(token)
