# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""RSA key pair management and JWT issuance.

Keeps an RSA key pair on disk, generating it with ``ssh-keygen`` and
``openssl`` when missing, and signs/verifies JWTs with it.

Example:
    >>> from keypair_auth import Auth
    >>>
    >>> auth = Auth({"jwt": {"expiresIn": "2 days"}})
    >>> await auth.generate()
    >>> token = auth.sign({"user": "alice"})
    >>> claims = auth.verify(token)
"""

__version__ = "0.1.0"

from .auth import Auth
from .config import AuthConfig, KeyPairConfig, SigningConfig, parse_duration
from .exceptions import (
    ExternalProcessError,
    InvalidInputError,
    KeypairAuthError,
    KeyUnavailableError,
    TokenExpiredError,
    VerificationError,
)
from .key_manager import KeyManager
from .models import KeyCache, KeyRole
from .process import ProcessRunner
from .token_service import TokenService

__all__ = [
    "__version__",
    "Auth",
    "AuthConfig",
    "KeyPairConfig",
    "SigningConfig",
    "parse_duration",
    "KeyManager",
    "KeyCache",
    "KeyRole",
    "ProcessRunner",
    "TokenService",
    "KeypairAuthError",
    "InvalidInputError",
    "ExternalProcessError",
    "KeyUnavailableError",
    "VerificationError",
    "TokenExpiredError",
]
