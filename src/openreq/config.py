"""Profiles, precedence and credential sources.

A *profile* bundles everything needed to talk to one API: where its
document lives, an optional base-URL override, auth, request settings, and
the batch failure policy. Profiles are JSON files named ``<name>.json``
under ``profiles/`` in the config directory:

* ``$XDG_CONFIG_HOME/openreq`` (``~/.config/openreq``) on Linux and the BSDs,
* ``~/.openreq`` everywhere else.

:func:`resolve_profile` decides what a command runs against. Each setting
is taken from the first layer that provides it:

1. command-line flags,
2. ``OPENREQ_PROFILE`` / ``OPENREQ_SCHEMA`` / ``OPENREQ_BASE_URL``,
3. ``./openreq.json`` (keys ``profile``, ``schema``, ``base_url``).

Secrets never live in profiles; auth settings hold a *source* string
(``env:VAR``, ``file:PATH`` or ``value:TEXT``) read by
:func:`resolve_credential` at request time.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

from openreq.exceptions import ConfigError
from openreq.models import Profile, SchemaSource

APP_NAME = "openreq"
PROJECT_FILE = "openreq.json"
ENV_PREFIX = "OPENREQ_"


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def get_config_dir() -> Path:
    """The per-user config directory (created on first use)."""
    if _is_xdg_platform():
        xdg_home = os.environ.get("XDG_CONFIG_HOME")
        root = Path(xdg_home) if xdg_home else Path.home() / ".config"
        config_dir = root / APP_NAME
    else:
        config_dir = Path.home() / f".{APP_NAME}"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_profiles_dir() -> Path:
    profiles_dir = get_config_dir() / "profiles"
    profiles_dir.mkdir(exist_ok=True)
    return profiles_dir


# --- profile storage ---


def list_profiles() -> list[str]:
    """Names of all saved profiles, alphabetically."""
    return sorted(entry.stem for entry in get_profiles_dir().glob("*.json") if entry.is_file())


def load_profile(name: str) -> Profile:
    """Read and validate the saved profile *name*.

    Raises:
        ConfigError: If it does not exist or does not validate.
    """
    location = get_profiles_dir() / f"{name}.json"
    if not location.is_file():
        raise ConfigError(f"Profile '{name}' not found at {location}")
    try:
        return Profile.model_validate_json(location.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigError(f"Invalid profile '{name}' at {location}: {exc}") from exc


def save_profile(profile: Profile) -> Path:
    """Write *profile* to ``profiles/<name>.json`` and return the path.

    The file is replaced atomically, so a crash never leaves a half-written
    profile behind.
    """
    location = get_profiles_dir() / f"{profile.name}.json"
    payload = json.dumps(profile.model_dump(mode="json", by_alias=True), indent=2) + "\n"

    handle, staging = tempfile.mkstemp(dir=location.parent, prefix=f".{location.name}.", suffix=".tmp")
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(payload)
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(staging, location)
    except BaseException:
        Path(staging).unlink(missing_ok=True)
        raise
    return location


def load_project_config() -> Optional[dict[str, Any]]:
    """The contents of ``./openreq.json``, or ``None`` when there is none.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    location = Path.cwd() / PROJECT_FILE
    if not location.is_file():
        return None
    try:
        data = json.loads(location.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigError(f"Invalid project config at {location}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {location}: expected a JSON object")
    return data


# --- precedence ---


def _first_setting(
    key: str, cli_value: Optional[str], project: dict[str, Any]
) -> Optional[str]:
    """*cli_value*, else ``OPENREQ_<KEY>``, else the project file's *key*."""
    for candidate in (cli_value, os.environ.get(ENV_PREFIX + key.upper()), project.get(key)):
        if candidate:
            return str(candidate)
    return None


def resolve_profile(
    cli_profile: Optional[str] = None,
    cli_schema: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> Profile:
    """Build the profile a command runs against.

    The named profile (if any) is loaded first; a schema or base URL found
    in any layer then overrides what it stores. With nothing configured the
    result is an unnamed ``default`` profile without a schema, and loading
    it reports :class:`~openreq.exceptions.MissingSchemaError`.

    Raises:
        ConfigError: If a named profile or the project file is invalid.
    """
    project = load_project_config() or {}

    name = _first_setting("profile", cli_profile, project)
    profile = load_profile(name) if name else Profile(name="default")

    schema = _first_setting("schema", cli_schema, project)
    if schema:
        profile.schema_ = SchemaSource(input="url", url=schema)

    base_url = _first_setting("base_url", cli_base_url, project)
    if base_url:
        profile.base_url = base_url

    return profile


# --- credentials ---


def _from_env(name: str) -> str:
    try:
        return os.environ[name]
    except KeyError:
        raise ConfigError(f"Environment variable '{name}' is not set") from None


def _from_file(raw_path: str) -> str:
    location = Path(raw_path).expanduser()
    if not location.is_file():
        raise ConfigError(f"Credential file not found: {location}")
    try:
        return location.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {location}: {exc}") from exc


_CREDENTIAL_READERS: dict[str, Callable[[str], str]] = {
    "env": _from_env,
    "file": _from_file,
    "value": lambda text: text,
}


def resolve_credential(source: str) -> str:
    """Read the secret a ``kind:argument`` source string points at.

    ``env:PETS_TOKEN`` reads an environment variable, ``file:~/.pets``
    reads (and strips) a file, ``value:abc`` is the literal ``abc``.

    Raises:
        ConfigError: For an unknown kind or an unreadable source.
    """
    kind, sep, argument = source.partition(":")
    reader = _CREDENTIAL_READERS.get(kind) if sep else None
    if reader is None:
        raise ConfigError(f"Unknown credential source format: {source}")
    return reader(argument)
