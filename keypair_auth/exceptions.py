# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Exceptions for key management and token operations."""

from collections.abc import Sequence


class KeypairAuthError(Exception):
    """Base exception for keypair_auth errors."""
    pass


class InvalidInputError(KeypairAuthError, ValueError):
    """Raised when a claim set, token or option value is malformed."""
    pass


class ExternalProcessError(KeypairAuthError):
    """Raised when a key tool cannot be started or exits non-zero.

    Attributes:
        command: Argument list that was executed
        returncode: Process exit code, or None if it never started
        stderr: Captured standard error output
    """

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr


class KeyUnavailableError(KeypairAuthError):
    """Raised when signing or verifying without usable key material."""
    pass


class VerificationError(KeypairAuthError):
    """Raised when a token fails signature, format or claim validation."""
    pass


class TokenExpiredError(VerificationError):
    """Raised when a token's expiry has passed."""
    pass
