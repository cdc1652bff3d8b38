# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Shared fixtures for keypair_auth tests."""

from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from keypair_auth import ExternalProcessError, KeyPairConfig


def make_private_pem(key_size: int = 2048) -> bytes:
    """Generate a PKCS#1 PEM private key, the format ``ssh-keygen -m PEM`` writes."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def derive_public_pem(private_pem: bytes) -> bytes:
    private_key = serialization.load_pem_private_key(private_pem, password=None)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


class FakeRunner:
    """Stands in for ssh-keygen/openssl by writing keys with cryptography.

    Records every command. Commands whose executable is listed in
    ``fail_on`` raise ExternalProcessError without touching the filesystem.
    """

    def __init__(self, fail_on: tuple[str, ...] = ()):
        self.commands: list[list[str]] = []
        self.fail_on = set(fail_on)

    async def run(self, command):
        command = [str(arg) for arg in command]
        self.commands.append(command)
        if command[0] in self.fail_on:
            raise ExternalProcessError(
                f"{command[0]} failed with code 1: boom",
                command=command,
                returncode=1,
                stderr="boom",
            )

        if "-f" in command:
            private_path = Path(command[command.index("-f") + 1])
            private_path.write_bytes(make_private_pem())
        else:
            private_path = Path(command[command.index("-in") + 1])
            public_path = Path(command[command.index("-out") + 1])
            public_path.write_bytes(derive_public_pem(private_path.read_bytes()))
        return ""

    @property
    def executables(self) -> list[str]:
        return [command[0] for command in self.commands]


@pytest.fixture
def key_config(tmp_path):
    """Key pair config pointing into a per-test directory."""
    return KeyPairConfig.create(private_key_path=tmp_path / "private.key")


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def runner_factory():
    """Build FakeRunner instances with custom failure behaviour."""
    return FakeRunner


@pytest.fixture
def pem_factory():
    return make_private_pem


@pytest.fixture
def existing_key_pair(key_config):
    """Write a key pair to the configured paths and return the PEM bytes."""
    private_pem = make_private_pem()
    public_pem = derive_public_pem(private_pem)
    key_config.private_key_path.write_bytes(private_pem)
    key_config.public_key_path.write_bytes(public_pem)
    return private_pem, public_pem

