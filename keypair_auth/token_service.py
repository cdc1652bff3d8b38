# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""JWT signing and verification with the managed key pair.

Tokens are produced and checked by PyJWT. Key material is read from the
key manager's cache on every call, so regenerating keys takes effect
immediately.
"""

import base64
import math
import time
from collections.abc import Mapping
from typing import Any

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from .config import SigningConfig
from .exceptions import (
    InvalidInputError,
    KeyUnavailableError,
    TokenExpiredError,
    VerificationError,
)
from .key_manager import KeyManager
from .models import KeyRole

# Envelope claim -> SigningConfig attribute that sets it
_ENVELOPE_OPTIONS = {
    "exp": "expires_in",
    "nbf": "not_before",
    "aud": "audience",
    "iss": "issuer",
    "sub": "subject",
}


class TokenService:
    """Signs claim sets and verifies tokens.

    Attributes:
        keys: Key manager providing the cached PEM key pair
        config: Signing options applied to every token
    """

    def __init__(self, keys: KeyManager, config: SigningConfig | None = None):
        self.keys = keys
        self.config = config or SigningConfig()
        self._parsed: dict[KeyRole, tuple[str, Any]] = {}

    def sign(self, claims: Mapping[str, Any]) -> str:
        """Sign a claim set with the cached private key.

        Args:
            claims: Non-empty mapping of claim names to values

        Returns:
            Compact JWT string

        Raises:
            InvalidInputError: If claims is not a non-empty mapping, or sets
                an envelope claim that the signing options also set
            KeyUnavailableError: If no usable private key is loaded
        """
        if not isinstance(claims, Mapping) or not claims:
            raise InvalidInputError("invalid data: claims must be a non-empty mapping")

        payload = self._build_payload(claims)
        private_key = self._key(KeyRole.PRIVATE)

        headers = {"kid": self.config.key_id} if self.config.key_id else None
        try:
            return jwt.encode(
                payload,
                private_key,
                algorithm=self.config.algorithm,
                headers=headers,
            )
        except TypeError as e:
            raise InvalidInputError(f"invalid data: {e}") from e

    def verify(self, token: str) -> dict[str, Any]:
        """Validate a token and return its claims.

        Args:
            token: Compact JWT string

        Returns:
            Decoded claims, including envelope fields such as iat and exp

        Raises:
            InvalidInputError: If token is not a non-empty string
            KeyUnavailableError: If no usable public key is loaded
            TokenExpiredError: If the token has expired
            VerificationError: If the signature, format or claims are invalid
        """
        if not isinstance(token, str) or not token:
            raise InvalidInputError("invalid token: expected a non-empty string")

        public_key = self._key(KeyRole.PUBLIC)
        try:
            return jwt.decode(
                token,
                public_key,
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                leeway=self.config.leeway,
                options={
                    "verify_aud": self.config.audience is not None,
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError(f"Token expired: {e}") from e
        except jwt.InvalidTokenError as e:
            raise VerificationError(f"Token verification failed: {e}") from e

    def get_public_key_jwk(self) -> dict[str, Any]:
        """Get the cached public key in JWK format.

        Raises:
            KeyUnavailableError: If no usable public key is loaded
        """
        public_numbers = self._key(KeyRole.PUBLIC).public_numbers()
        return {
            "kty": "RSA",
            "use": "sig",
            "kid": self.config.key_id or "default",
            "alg": self.config.algorithm,
            "n": self._int_to_base64url(public_numbers.n),
            "e": self._int_to_base64url(public_numbers.e),
        }

    def _build_payload(self, claims: Mapping[str, Any]) -> dict[str, Any]:
        payload = dict(claims)

        for claim, option in _ENVELOPE_OPTIONS.items():
            if getattr(self.config, option) is not None and claim in payload:
                raise InvalidInputError(
                    f'Bad "{option}" option: the claims already have a "{claim}" property'
                )

        iat = payload.get("iat")
        if "iat" in payload and (not isinstance(iat, (int, float)) or isinstance(iat, bool)):
            raise InvalidInputError('invalid data: "iat" should be a number of seconds')
        timestamp = iat if iat is not None else int(time.time())
        if self.config.no_timestamp:
            payload.pop("iat", None)
        else:
            payload["iat"] = timestamp

        if self.config.expires_in is not None:
            payload["exp"] = math.floor(timestamp + self.config.expires_in_seconds)
        if self.config.not_before is not None:
            payload["nbf"] = math.floor(timestamp + self.config.not_before_seconds)
        if self.config.audience is not None:
            payload["aud"] = self.config.audience
        if self.config.issuer is not None:
            payload["iss"] = self.config.issuer
        if self.config.subject is not None:
            payload["sub"] = self.config.subject

        return payload

    def _key(self, role: KeyRole) -> Any:
        """Parse the cached PEM for a role, reusing the last parse if unchanged."""
        pem = self.keys.get_key(role)
        if not pem:
            raise KeyUnavailableError(f"No {role.value} key loaded")

        cached = self._parsed.get(role)
        if cached and cached[0] == pem:
            return cached[1]

        try:
            if role is KeyRole.PRIVATE:
                key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
                expected = RSAPrivateKey
            else:
                key = serialization.load_pem_public_key(pem.encode("utf-8"))
                expected = RSAPublicKey
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyUnavailableError(f"Cached {role.value} key is not a usable PEM key: {e}") from e

        if not isinstance(key, expected):
            raise KeyUnavailableError(f"Cached {role.value} key is not an RSA key")

        self._parsed[role] = (pem, key)
        return key

    @staticmethod
    def _int_to_base64url(value: int) -> str:
        """Convert integer to base64url-encoded string."""
        byte_length = (value.bit_length() + 7) // 8
        value_bytes = value.to_bytes(byte_length, byteorder='big')
        return base64.urlsafe_b64encode(value_bytes).decode('ascii').rstrip('=')
