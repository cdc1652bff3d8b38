# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Key roles and the in-memory key cache."""

from dataclasses import dataclass
from enum import Enum


class KeyRole(str, Enum):
    """Role of a key file within a key pair."""

    PRIVATE = "private"
    PUBLIC = "public"


ALL_ROLES = frozenset(KeyRole)


@dataclass
class KeyCache:
    """PEM contents of the most recently loaded key files.

    Attributes:
        private: Private key PEM text, or None if never loaded
        public: Public key PEM text, or None if never loaded
    """
    private: str | None = None
    public: str | None = None

    def get(self, role: KeyRole) -> str | None:
        role = KeyRole(role)
        if role is KeyRole.PRIVATE:
            return self.private
        return self.public

    def put(self, role: KeyRole, content: str) -> None:
        role = KeyRole(role)
        if role is KeyRole.PRIVATE:
            self.private = content
        else:
            self.public = content
