"""
Configuration loader that merges ambient Conjur connection settings with explicit provider fields. Ambient state is read first from the system and user conjurrc YAML files and then from CONJUR_* environment variables, each later source winning; explicit non-empty fields then override the ambient value field by field. Ambient credentials used by the environment-derived authentication strategy are loaded here too, so nothing downstream touches the process environment directly.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from models.secrets.config import (
    CONNECTION_FIELDS,
    AmbientCredentials,
    EffectiveConfig,
    ProviderSettings,
)
from services.secrets.errors import ConfigLoadError

logger = logging.getLogger(__name__)

SYSTEM_CONJURRC = "/etc/conjur.conf"

# conjurrc key -> EffectiveConfig field
_CONJURRC_KEYS = {
    "appliance_url": "appliance_url",
    "account": "account",
    "cert_file": "ssl_cert_path",
    "netrc_path": "netrc_path",
}

# environment variable -> EffectiveConfig field
_ENV_KEYS = {
    "CONJUR_APPLIANCE_URL": "appliance_url",
    "CONJUR_ACCOUNT": "account",
    "CONJUR_CERT_FILE": "ssl_cert_path",
    "CONJUR_SSL_CERTIFICATE": "ssl_cert",
    "CONJUR_NETRC_PATH": "netrc_path",
}


def _user_conjurrc(environ: Mapping[str, str]) -> Optional[Path]:
    explicit = (environ.get("CONJURRC") or "").strip()
    if explicit:
        return Path(explicit).expanduser()
    home = (environ.get("HOME") or "").strip()
    if home:
        return Path(home) / ".conjurrc"
    return None


def read_conjurrc(path: Union[str, Path]) -> Dict[str, str]:
    path = Path(path)
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"Unable to read Conjur configuration file {path}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Conjur configuration file {path} is not valid YAML") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Conjur configuration file {path} must contain a mapping")

    values: Dict[str, str] = {}
    for key, field in _CONJURRC_KEYS.items():
        raw = data.get(key)
        if raw is None:
            continue
        if not isinstance(raw, (str, int, float)):
            raise ConfigLoadError(f"Conjur configuration key '{key}' in {path} must be a scalar")
        values[field] = str(raw).strip()
    logger.debug("Loaded Conjur configuration keys %s from %s", sorted(values), path)
    return values


def load_ambient_config(
    environ: Optional[Mapping[str, str]] = None,
    system_conjurrc: Union[str, Path, None] = SYSTEM_CONJURRC,
) -> EffectiveConfig:
    env = os.environ if environ is None else environ
    values: Dict[str, str] = {}

    if system_conjurrc:
        values.update(read_conjurrc(system_conjurrc))
    user_conjurrc = _user_conjurrc(env)
    if user_conjurrc is not None:
        values.update(read_conjurrc(user_conjurrc))

    for env_key, field in _ENV_KEYS.items():
        raw = (env.get(env_key) or "").strip()
        if raw:
            values[field] = raw

    if not values.get("netrc_path"):
        home = (env.get("HOME") or "").strip()
        if home:
            values["netrc_path"] = str(Path(home) / ".netrc")

    return EffectiveConfig(**values)


def apply_overrides(ambient: EffectiveConfig, explicit: Mapping[str, Any]) -> EffectiveConfig:
    updates = {}
    for field in CONNECTION_FIELDS:
        value = explicit.get(field)
        if isinstance(value, str) and value != "":
            updates[field] = value
    if not updates:
        return ambient
    return ambient.model_copy(update=updates)


def load_config(
    explicit: Union[ProviderSettings, Mapping[str, Any], None] = None,
    environ: Optional[Mapping[str, str]] = None,
    system_conjurrc: Union[str, Path, None] = SYSTEM_CONJURRC,
) -> EffectiveConfig:
    ambient = load_ambient_config(environ=environ, system_conjurrc=system_conjurrc)
    if explicit is None:
        return ambient
    if isinstance(explicit, ProviderSettings):
        explicit = explicit.connection_overrides()
    return apply_overrides(ambient, explicit)


def load_ambient_credentials(environ: Optional[Mapping[str, str]] = None) -> AmbientCredentials:
    env = os.environ if environ is None else environ
    return AmbientCredentials(
        login=(env.get("CONJUR_AUTHN_LOGIN") or "").strip(),
        api_key=(env.get("CONJUR_AUTHN_API_KEY") or "").strip(),
        token=(env.get("CONJUR_AUTHN_TOKEN") or "").strip(),
        token_file=(env.get("CONJUR_AUTHN_TOKEN_FILE") or "").strip(),
    )
