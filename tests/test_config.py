import json

import pytest

from catalog_purge.config import (
    build_connection_settings,
    build_sanitizer,
    load_config,
    save_config,
    validate_config,
)
from catalog_purge.vault import CredentialVault


def _cfg(**directory):
    base = {"server": "hana:30015", "company_db": "SBODEMO", "db_user": "SYSTEM", "db_password": "dbsecret"}
    base.update(directory)
    return {"runtime": {"job_name": "nightly"}, "directory": base}


def test_save_protects_passwords_and_keeps_other_sections(tmp_path):
    vault = CredentialVault(key_dir=str(tmp_path / "keys"))
    path = tmp_path / "config.json"

    stored = save_config(path, _cfg(password="b1secret"), vault)

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk == stored
    assert on_disk["runtime"] == {"job_name": "nightly"}
    assert vault.is_protected(on_disk["directory"]["db_password"])
    assert vault.is_protected(on_disk["directory"]["password"])
    assert "dbsecret" not in path.read_text(encoding="utf-8")
    assert not (tmp_path / "config.json.tmp").exists()


def test_save_does_not_protect_twice(tmp_path):
    vault = CredentialVault(key_dir=str(tmp_path / "keys"))
    path = tmp_path / "config.json"
    first = save_config(path, _cfg(), vault)

    second = save_config(path, load_config(path), vault)

    assert second["directory"]["db_password"] == first["directory"]["db_password"]


def test_connection_settings_unprotect_credentials(tmp_path):
    vault = CredentialVault(key_dir=str(tmp_path / "keys"))
    path = tmp_path / "config.json"
    save_config(path, _cfg(password="b1secret", license_server="lic:30000"), vault)

    settings = build_connection_settings(load_config(path), vault)

    assert settings.db_password == "dbsecret"
    assert settings.password == "b1secret"
    assert settings.license_server == "lic:30000"
    assert settings.db_server_type == "dst_HANADB"
    assert settings.url is None


def test_connection_settings_accept_null_fields(tmp_path):
    vault = CredentialVault(key_dir=str(tmp_path / "keys"))

    settings = build_connection_settings({"directory": {"url": "sqlite://", "db_password": None}}, vault)

    assert settings.db_password == ""
    assert settings.url == "sqlite://"


def test_build_sanitizer_from_config():
    sanitizer = build_sanitizer({"sanitizer": {"charset": "relaxed", "max_length": 8}})

    assert sanitizer.validate("A 1.2") == "A 1.2"
    assert sanitizer.validate("A" * 9) is None


@pytest.mark.parametrize(
    "cfg",
    [
        {},
        {"directory": "hana"},
        {"directory": {"server": "hana"}},
        {"directory": {"url": "sqlite://", "db_password": 5}},
        {"directory": {"url": "sqlite://", "engine_options": []}},
        {"directory": {"url": "sqlite://"}, "sanitizer": {"charset": "unicode"}},
        {"directory": {"url": "sqlite://"}, "sanitizer": {"max_length": 0}},
        {"directory": {"url": "sqlite://"}, "vault": {"scope": "domain"}},
        {"directory": {"url": "sqlite://"}, "input": {"card_key_column": 1, "item_key_column": 1}},
        {"directory": {"url": "sqlite://"}, "input": {"card_key_column": -1}},
    ],
)
def test_validate_config_rejects(cfg):
    with pytest.raises(ValueError):
        validate_config(cfg)


def test_validate_config_accepts_url_only():
    validate_config({"directory": {"url": "sqlite://"}})
