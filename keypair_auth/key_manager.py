# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""RSA key pair lifecycle management.

The key manager makes sure a PEM key pair exists on disk, producing it with
external tools (``ssh-keygen`` for the private key, ``openssl`` for the
public key), and keeps the contents of both files cached in memory.

Concurrent ``ensure_keys`` calls against the same paths are not safe: the
existence checks and deletes are not synchronised.
"""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from .config import KeyPairConfig
from .models import ALL_ROLES, KeyCache, KeyRole
from .process import ProcessRunner

logger = logging.getLogger(__name__)


class KeyManager:
    """Generates, loads and caches an RSA key pair.

    Attributes:
        config: Key file locations and tool names
        runner: Process runner used to invoke the key tools
    """

    def __init__(
        self,
        config: KeyPairConfig | None = None,
        runner: ProcessRunner | None = None,
    ):
        self.config = config or KeyPairConfig.create()
        self.runner = runner or ProcessRunner()
        self._cache = KeyCache()

    def _path(self, role: KeyRole) -> Path:
        if role is KeyRole.PRIVATE:
            return self.config.private_key_path
        return self.config.public_key_path

    async def ensure_keys(
        self,
        overwrite: bool = False,
        regenerate_both_on_overwrite: bool = False,
    ) -> None:
        """Make sure a key pair exists and is loaded.

        Args:
            overwrite: Regenerate keys even if the private key exists
            regenerate_both_on_overwrite: When overwriting, also replace the
                private key instead of only re-deriving the public key

        Raises:
            ExternalProcessError: If a key tool fails
        """
        if not self.config.private_key_path.exists():
            logger.debug("No private key at %s, generating", self.config.private_key_path)
            await self.generate_private_key()
        elif overwrite:
            if regenerate_both_on_overwrite:
                await self.generate_private_key()
            else:
                await self.load_keys({KeyRole.PRIVATE})
                await self.generate_public_key()
        else:
            await self.load_keys()

    async def generate_private_key(self) -> None:
        """Replace the private key file and derive a matching public key."""
        private_path = self.config.private_key_path
        private_path.unlink(missing_ok=True)

        await self.runner.run([
            self.config.keygen_command,
            "-t", "rsa",
            "-b", str(self.config.key_size),
            "-m", "PEM",
            "-N", "",
            "-q",
            "-f", str(private_path),
        ])
        await self.load_keys({KeyRole.PRIVATE})
        await self.generate_public_key()

    async def generate_public_key(self) -> None:
        """Replace the public key file with one derived from the private key file."""
        public_path = self.config.public_key_path
        public_path.unlink(missing_ok=True)

        await self.runner.run([
            self.config.export_command,
            "rsa",
            "-in", str(self.config.private_key_path),
            "-pubout",
            "-outform", "PEM",
            "-out", str(public_path),
        ])
        await self.load_keys({KeyRole.PUBLIC})

    async def load_keys(self, roles: Iterable[KeyRole] = ALL_ROLES) -> None:
        """Read key files into the cache.

        Roles whose file does not exist keep their current cache entry.

        Args:
            roles: Key roles to load (default: both)
        """
        for role in sorted(KeyRole(role) for role in roles):
            path = self._path(role)
            if not path.exists():
                logger.debug("Key file %s not found, keeping cached %s key", path, role.value)
                continue
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
            self._cache.put(role, content)
            logger.debug("Loaded %s key from %s", role.value, path)

    def get_key(self, role: KeyRole | str) -> str | None:
        """Return the cached PEM text for a role, or None if never loaded."""
        return self._cache.get(KeyRole(role))

    @property
    def private_key(self) -> str | None:
        return self._cache.private

    @property
    def public_key(self) -> str | None:
        return self._cache.public

    def has_keys(self) -> bool:
        """True when both halves of the key pair are cached."""
        return self._cache.private is not None and self._cache.public is not None
