# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Configuration for key management and token signing.

Configuration values can come from explicit arguments, from an option
mapping of the form ``{"jwt": {...}, "keygen": ..., "openssl": ...,
"private": ..., "public": ...}`` or from ``KEYPAIR_*`` environment
variables. Empty values always fall back to the defaults.
"""

import os
import re
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import InvalidInputError

DEFAULT_KEYGEN_COMMAND = "ssh-keygen"
DEFAULT_EXPORT_COMMAND = "openssl"
DEFAULT_ALGORITHM = "RS256"
RSA_ALGORITHMS = ("RS256", "RS384", "RS512", "PS256", "PS384", "PS512")
DEFAULT_KEY_SIZE = 4096
PRIVATE_KEY_FILENAME = "private.key"
PUBLIC_KEY_SUFFIX = ".pub"

_SECOND = 1.0
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR

_DURATION_UNITS = {
    "ms": 0.001, "msec": 0.001, "msecs": 0.001,
    "millisecond": 0.001, "milliseconds": 0.001,
    "s": _SECOND, "sec": _SECOND, "secs": _SECOND,
    "second": _SECOND, "seconds": _SECOND,
    "m": _MINUTE, "min": _MINUTE, "mins": _MINUTE,
    "minute": _MINUTE, "minutes": _MINUTE,
    "h": _HOUR, "hr": _HOUR, "hrs": _HOUR, "hour": _HOUR, "hours": _HOUR,
    "d": _DAY, "day": _DAY, "days": _DAY,
    "w": 7 * _DAY, "week": 7 * _DAY, "weeks": 7 * _DAY,
    "y": 365.25 * _DAY, "yr": 365.25 * _DAY, "yrs": 365.25 * _DAY,
    "year": 365.25 * _DAY, "years": 365.25 * _DAY,
}

_DURATION_PATTERN = re.compile(r"^(-?(?:\d+)?\.?\d+) *([a-z]+)?$", re.IGNORECASE)


def parse_duration(value: int | float | str) -> float:
    """Convert a duration option into seconds.

    Numbers are taken as seconds. Strings carry a unit (``"2 days"``,
    ``"10h"``, ``"1.5 hours"``); a string without a unit is milliseconds.

    Args:
        value: Duration as seconds or as a human readable string

    Returns:
        Duration in seconds

    Raises:
        InvalidInputError: If the value cannot be interpreted
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid duration: {value!r}")

    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        raise InvalidInputError(f"Invalid duration: {value!r}")

    amount = float(match.group(1))
    unit = (match.group(2) or "ms").lower()
    if unit not in _DURATION_UNITS:
        raise InvalidInputError(f"Unknown duration unit in {value!r}")
    return amount * _DURATION_UNITS[unit]


def _default(value: Any, env_var: str | None, fallback: Any, environ: Mapping[str, str] | None = None) -> Any:
    """Helper to pick an explicit value, then env var, then fallback."""
    if value not in (None, ""):
        return value
    if env_var:
        env = os.environ if environ is None else environ
        if env.get(env_var):
            return env[env_var]
    return fallback


def default_private_key_path() -> Path:
    return Path(tempfile.gettempdir()) / PRIVATE_KEY_FILENAME


@dataclass(frozen=True)
class KeyPairConfig:
    """Locations of the key pair and the tools used to produce it.

    Attributes:
        private_key_path: PEM private key file
        public_key_path: PEM public key file
        keygen_command: Executable that generates the private key
        export_command: Executable that derives the public key
        key_size: RSA modulus size in bits
    """
    private_key_path: Path
    public_key_path: Path
    keygen_command: str = DEFAULT_KEYGEN_COMMAND
    export_command: str = DEFAULT_EXPORT_COMMAND
    key_size: int = DEFAULT_KEY_SIZE

    @classmethod
    def create(
        cls,
        private_key_path: Path | str | None = None,
        public_key_path: Path | str | None = None,
        keygen_command: str | None = None,
        export_command: str | None = None,
        key_size: int | None = None,
    ) -> "KeyPairConfig":
        """Build a config, applying defaults to unset or empty values.

        The public key path defaults to the private key path with a
        ``.pub`` suffix appended.
        """
        private_path = Path(private_key_path) if private_key_path else default_private_key_path()
        public_path = (
            Path(public_key_path)
            if public_key_path
            else private_path.with_name(private_path.name + PUBLIC_KEY_SUFFIX)
        )
        return cls(
            private_key_path=private_path,
            public_key_path=public_path,
            keygen_command=keygen_command or DEFAULT_KEYGEN_COMMAND,
            export_command=export_command or DEFAULT_EXPORT_COMMAND,
            key_size=key_size or DEFAULT_KEY_SIZE,
        )


@dataclass(frozen=True)
class SigningConfig:
    """Token signing options passed through to every sign/verify call.

    Attributes:
        algorithm: JWT signing algorithm
        expires_in: Token lifetime, seconds or duration string
        not_before: Delay before the token becomes valid
        audience: ``aud`` claim to set and require
        issuer: ``iss`` claim to set and require
        subject: ``sub`` claim to set
        key_id: ``kid`` header value
        leeway: Clock skew tolerance in seconds when verifying
        no_timestamp: Skip the ``iat`` claim when signing
    """
    algorithm: str = DEFAULT_ALGORITHM
    expires_in: int | float | str | None = None
    not_before: int | float | str | None = None
    audience: str | list[str] | None = None
    issuer: str | None = None
    subject: str | None = None
    key_id: str | None = None
    leeway: int | float | str = 0
    no_timestamp: bool = False

    def __post_init__(self):
        if not isinstance(self.algorithm, str) or not self.algorithm:
            object.__setattr__(self, "algorithm", DEFAULT_ALGORITHM)
        if self.algorithm not in RSA_ALGORITHMS:
            raise InvalidInputError(
                f"Unsupported algorithm: {self.algorithm}. "
                f"Supported: {', '.join(RSA_ALGORITHMS)}"
            )
        # Durations are validated eagerly
        if self.expires_in is not None:
            parse_duration(self.expires_in)
        if self.not_before is not None:
            parse_duration(self.not_before)
        if isinstance(self.leeway, bool) or not isinstance(self.leeway, (int, float, str)):
            raise InvalidInputError(f"Invalid leeway: {self.leeway!r}")
        if isinstance(self.leeway, str):
            try:
                object.__setattr__(self, "leeway", float(self.leeway))
            except ValueError as e:
                raise InvalidInputError(f"Invalid leeway: {self.leeway!r}") from e
        if not isinstance(self.no_timestamp, bool):
            raise InvalidInputError(f"Invalid no_timestamp: {self.no_timestamp!r}")

    @property
    def expires_in_seconds(self) -> float | None:
        return None if self.expires_in is None else parse_duration(self.expires_in)

    @property
    def not_before_seconds(self) -> float | None:
        return None if self.not_before is None else parse_duration(self.not_before)

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> "SigningConfig":
        """Build from a ``jwt`` option mapping.

        Accepts both snake_case keys and camelCase keys such as
        ``expiresIn``, ``notBefore`` and ``keyid``.
        """
        if not isinstance(options, Mapping):
            return cls()

        def pick(*names: str) -> Any:
            for name in names:
                if options.get(name) is not None:
                    return options[name]
            return None

        values = {
            "algorithm": pick("algorithm"),
            "expires_in": pick("expires_in", "expiresIn"),
            "not_before": pick("not_before", "notBefore"),
            "audience": pick("audience"),
            "issuer": pick("issuer"),
            "subject": pick("subject"),
            "key_id": pick("key_id", "keyid"),
            "leeway": pick("leeway", "clockTolerance"),
            "no_timestamp": pick("no_timestamp", "noTimestamp"),
        }
        return cls(**{name: value for name, value in values.items() if value is not None})


@dataclass(frozen=True)
class AuthConfig:
    """Key pair and signing configuration for an Auth instance."""
    keys: KeyPairConfig = field(default_factory=KeyPairConfig.create)
    signing: SigningConfig = field(default_factory=SigningConfig)

    @classmethod
    def from_options(cls, options: Any) -> "AuthConfig":
        """Build from an option mapping; anything that is not a mapping yields defaults."""
        if not isinstance(options, Mapping):
            options = {}

        def text(name: str) -> str | None:
            value = options.get(name)
            return value if isinstance(value, (str, Path)) and str(value) else None

        keys = KeyPairConfig.create(
            private_key_path=text("private"),
            public_key_path=text("public"),
            keygen_command=text("keygen"),
            export_command=text("openssl"),
        )
        return cls(keys=keys, signing=SigningConfig.from_options(options.get("jwt")))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AuthConfig":
        """Build from ``KEYPAIR_*`` environment variables."""
        keys = KeyPairConfig.create(
            private_key_path=_default(None, "KEYPAIR_PRIVATE_KEY_PATH", None, environ),
            public_key_path=_default(None, "KEYPAIR_PUBLIC_KEY_PATH", None, environ),
            keygen_command=_default(None, "KEYPAIR_KEYGEN_COMMAND", None, environ),
            export_command=_default(None, "KEYPAIR_EXPORT_COMMAND", None, environ),
        )
        expires_in = _default(None, "KEYPAIR_JWT_EXPIRES_IN", None, environ)
        if isinstance(expires_in, str) and expires_in.isdigit():
            # Plain digits in the environment mean seconds
            expires_in = int(expires_in)
        signing = SigningConfig(
            algorithm=_default(None, "KEYPAIR_JWT_ALGORITHM", DEFAULT_ALGORITHM, environ),
            expires_in=expires_in,
        )
        return cls(keys=keys, signing=signing)
