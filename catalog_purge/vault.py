"""
At-rest protection for directory credentials.

Protected values look like ``protected:v1:<scope>:<fernet token>``.  The
Fernet key is derived from a random key file combined with the identity of
the protection scope (the current user name, or the machine node for the
``machine`` scope), so a token only decrypts under the scope that produced
it.  Values without the tag are legacy plaintext and are passed through.
"""

from __future__ import annotations

import base64
import getpass
import os
import secrets
import socket
import uuid
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .common import PrintLogger
from .events import emit_log

TAG_PREFIX = "protected"
FORMAT_VERSION = "v1"
SCOPES = ("user", "machine")
KEY_FILE_NAME = "vault.key"


class CryptographicError(Exception):
    """A protected credential could not be decrypted."""


def _default_key_dir(scope: str) -> Path:
    if scope == "user":
        return Path.home() / ".catalog_purge"
    if os.name == "nt":
        return Path(os.environ.get("PROGRAMDATA", r"C:\ProgramData")) / "catalog_purge"
    return Path("/etc/catalog_purge")


def _scope_identity(scope: str) -> bytes:
    if scope == "user":
        return f"user:{getpass.getuser()}".encode("utf-8")
    return f"machine:{socket.gethostname()}:{uuid.getnode():x}".encode("utf-8")


class CredentialVault:
    def __init__(
        self,
        scope: str = "user",
        key_dir: Optional[str] = None,
        logger: Optional[PrintLogger] = None,
    ) -> None:
        scope_name = str(scope).strip().lower()
        if scope_name not in SCOPES:
            raise ValueError(f"Unsupported vault scope: {scope}")
        self.scope = scope_name
        self.key_dir = Path(key_dir) if key_dir else _default_key_dir(scope_name)
        self.logger = logger
        self._fernet: Optional[Fernet] = None

    @property
    def _prefix(self) -> str:
        return f"{TAG_PREFIX}:{FORMAT_VERSION}:{self.scope}:"

    @staticmethod
    def is_protected(value: Optional[str]) -> bool:
        return bool(value) and str(value).startswith(f"{TAG_PREFIX}:")

    def protect(self, plaintext: str) -> str:
        if not plaintext:
            return plaintext
        token = self._cipher().encrypt(plaintext.encode("utf-8"))
        return self._prefix + token.decode("ascii")

    def unprotect(self, stored: str) -> str:
        if not stored:
            return stored
        if not self.is_protected(stored):
            emit_log(
                self.logger,
                level="WARN",
                msg="credential_legacy_plaintext",
                hint="save the configuration to protect stored credentials",
            )
            return stored
        parts = stored.split(":", 3)
        if len(parts) != 4 or parts[1] != FORMAT_VERSION:
            raise CryptographicError("Unsupported protected credential format")
        if parts[2] != self.scope:
            raise CryptographicError(
                f"Credential was protected under the '{parts[2]}' scope, vault uses '{self.scope}'"
            )
        try:
            plaintext = self._cipher().decrypt(parts[3].encode("ascii"))
        except (InvalidToken, ValueError) as exc:
            raise CryptographicError("Credential could not be decrypted under the current scope") from exc
        return plaintext.decode("utf-8")

    def _cipher(self) -> Fernet:
        if self._fernet is None:
            material = self._load_key_material()
            derived = HKDF(
                algorithm=hashes.SHA256(),
                length=32,
                salt=None,
                info=_scope_identity(self.scope),
            ).derive(material)
            self._fernet = Fernet(base64.urlsafe_b64encode(derived))
        return self._fernet

    def _load_key_material(self) -> bytes:
        key_path = self.key_dir / KEY_FILE_NAME
        if key_path.exists():
            return key_path.read_bytes()
        self.key_dir.mkdir(parents=True, exist_ok=True)
        material = secrets.token_bytes(32)
        fd = os.open(str(key_path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "wb") as handle:
            handle.write(material)
        emit_log(self.logger, level="INFO", msg="vault_key_created", scope=self.scope, path=str(key_path))
        return material


__all__ = ["CredentialVault", "CryptographicError", "SCOPES"]
