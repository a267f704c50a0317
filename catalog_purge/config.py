from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .common import PrintLogger
from .directory.base import ConnectionSettings
from .sanitize import CHARSETS, DEFAULT_MAX_LENGTH, KeySanitizer
from .vault import SCOPES, CredentialVault

SECRET_KEYS = ("db_password", "password")
_STRING_KEYS = (
    "server",
    "db_server_type",
    "company_db",
    "db_user",
    "db_password",
    "user_name",
    "password",
    "license_server",
    "sld_server",
)


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        cfg: Dict[str, Any] = json.load(handle)
    validate_config(cfg)
    return cfg


def validate_config(cfg: Dict[str, Any]) -> None:
    if not isinstance(cfg, dict):
        raise ValueError("configuration must be a JSON object")
    directory = cfg.get("directory")
    if not isinstance(directory, dict):
        raise ValueError("Missing config key: directory")
    for key in _STRING_KEYS:
        value = directory.get(key)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"directory.{key} must be a string")
    url = directory.get("url")
    if url is not None and not isinstance(url, str):
        raise ValueError("directory.url must be a string when provided")
    if not url:
        missing = [key for key in ("server", "company_db") if not directory.get(key)]
        if missing:
            raise ValueError(f"directory missing keys: {', '.join(missing)} (or provide directory.url)")
    engine_options = directory.get("engine_options")
    if engine_options is not None and not isinstance(engine_options, dict):
        raise ValueError("directory.engine_options must be an object when provided")

    sanitizer = cfg.get("sanitizer", {})
    if not isinstance(sanitizer, dict):
        raise ValueError("sanitizer must be an object when provided")
    charset = str(sanitizer.get("charset", "strict")).lower()
    if charset not in CHARSETS:
        raise ValueError(f"sanitizer.charset must be one of: {', '.join(sorted(CHARSETS))}")
    max_length = sanitizer.get("max_length", DEFAULT_MAX_LENGTH)
    if isinstance(max_length, bool) or not isinstance(max_length, int) or max_length < 1:
        raise ValueError("sanitizer.max_length must be a positive integer")

    vault = cfg.get("vault", {})
    if not isinstance(vault, dict):
        raise ValueError("vault must be an object when provided")
    scope = str(vault.get("scope", "user")).lower()
    if scope not in SCOPES:
        raise ValueError(f"vault.scope must be one of: {', '.join(SCOPES)}")

    input_cfg = cfg.get("input", {})
    if not isinstance(input_cfg, dict):
        raise ValueError("input must be an object when provided")
    for key in ("card_key_column", "item_key_column"):
        value = input_cfg.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
            raise ValueError(f"input.{key} must be a non-negative integer")
    if input_cfg.get("card_key_column", 0) == input_cfg.get("item_key_column", 1):
        raise ValueError("input.card_key_column and input.item_key_column must differ")


def save_config(path: Union[str, Path], cfg: Dict[str, Any], vault: CredentialVault) -> Dict[str, Any]:
    """Write ``cfg`` with its directory passwords protected and return the written copy."""

    validate_config(cfg)
    stored = copy.deepcopy(cfg)
    directory = stored["directory"]
    for key in SECRET_KEYS:
        value = directory.get(key)
        if value and not vault.is_protected(value):
            directory[key] = vault.protect(value)
    target = Path(path)
    tmp_path = target.with_name(target.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as handle:
        json.dump(stored, handle, indent=2)
        handle.write("\n")
    tmp_path.replace(target)
    return stored


def build_logger(cfg: Dict[str, Any]) -> PrintLogger:
    runtime = cfg.get("runtime", {}) or {}
    return PrintLogger(
        job_name=runtime.get("job_name", "catalog_purge"),
        file_path=runtime.get("log_file"),
        level=runtime.get("log_level", "INFO"),
        max_bytes=int(runtime.get("log_max_bytes", 5 * 1024 * 1024)),
        backup_count=int(runtime.get("log_backup_count", 3)),
    )


def build_vault(cfg: Dict[str, Any], logger: Optional[PrintLogger] = None) -> CredentialVault:
    vault_cfg = cfg.get("vault", {}) or {}
    return CredentialVault(
        scope=vault_cfg.get("scope", "user"),
        key_dir=vault_cfg.get("key_dir"),
        logger=logger,
    )


def build_sanitizer(cfg: Dict[str, Any]) -> KeySanitizer:
    sanitizer_cfg = cfg.get("sanitizer", {}) or {}
    return KeySanitizer(
        charset=sanitizer_cfg.get("charset", "strict"),
        max_length=sanitizer_cfg.get("max_length", DEFAULT_MAX_LENGTH),
    )


def build_connection_settings(cfg: Dict[str, Any], vault: CredentialVault) -> ConnectionSettings:
    directory = cfg["directory"]
    return ConnectionSettings(
        server=directory.get("server") or "",
        db_server_type=directory.get("db_server_type") or "dst_HANADB",
        company_db=directory.get("company_db") or "",
        db_user=directory.get("db_user") or "",
        db_password=vault.unprotect(directory.get("db_password") or ""),
        user_name=directory.get("user_name") or "",
        password=vault.unprotect(directory.get("password") or ""),
        license_server=directory.get("license_server") or "",
        sld_server=directory.get("sld_server") or "",
        url=directory.get("url") or None,
        engine_options=dict(directory.get("engine_options") or {}),
    )


__all__ = [
    "build_connection_settings",
    "build_logger",
    "build_sanitizer",
    "build_vault",
    "load_config",
    "save_config",
    "validate_config",
]
