import os

import pytest

from catalog_purge.vault import CredentialVault, CryptographicError


@pytest.mark.parametrize("secret", ["x", "p@ss w0rd!", "ünïcødé-секрет"])
def test_round_trip(tmp_path, secret):
    vault = CredentialVault(scope="user", key_dir=str(tmp_path))

    stored = vault.protect(secret)

    assert stored.startswith("protected:v1:user:")
    assert secret not in stored
    assert vault.unprotect(stored) == secret
    assert CredentialVault(scope="user", key_dir=str(tmp_path)).unprotect(stored) == secret


def test_legacy_plaintext_is_returned_with_warning(tmp_path, recording_logger):
    vault = CredentialVault(scope="user", key_dir=str(tmp_path), logger=recording_logger)

    assert vault.unprotect("hunter2") == "hunter2"
    assert recording_logger.messages() == ["credential_legacy_plaintext"]
    assert "hunter2" not in repr(recording_logger.records)


def test_empty_values_pass_through(tmp_path):
    vault = CredentialVault(key_dir=str(tmp_path))

    assert vault.protect("") == ""
    assert vault.unprotect("") == ""


def test_scope_mismatch_fails(tmp_path):
    stored = CredentialVault(scope="user", key_dir=str(tmp_path)).protect("secret")

    with pytest.raises(CryptographicError):
        CredentialVault(scope="machine", key_dir=str(tmp_path)).unprotect(stored)


def test_foreign_key_fails(tmp_path):
    stored = CredentialVault(key_dir=str(tmp_path / "a")).protect("secret")

    with pytest.raises(CryptographicError):
        CredentialVault(key_dir=str(tmp_path / "b")).unprotect(stored)


def test_tampered_token_fails(tmp_path):
    vault = CredentialVault(key_dir=str(tmp_path))
    stored = vault.protect("secret")

    with pytest.raises(CryptographicError):
        vault.unprotect(stored[:-4] + "AAAA")


def test_unknown_format_version_fails(tmp_path):
    with pytest.raises(CryptographicError):
        CredentialVault(key_dir=str(tmp_path)).unprotect("protected:v9:user:abc")


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_key_file_is_private(tmp_path):
    CredentialVault(key_dir=str(tmp_path)).protect("secret")

    assert (tmp_path / "vault.key").stat().st_mode & 0o777 == 0o600


def test_is_protected():
    assert CredentialVault.is_protected("protected:v1:user:abc")
    assert not CredentialVault.is_protected("plain")
    assert not CredentialVault.is_protected("")
