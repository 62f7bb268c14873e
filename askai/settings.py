"""
Layered settings.

Each option is resolved on its own by walking an ordered list of sources
and taking the first non-empty value:

  1) flag          command-line value
  2) environment   ASKAI_URL, ASKAI_KEY, ASKAI_MODEL, ASKAI_CUSTOMMODEL, ASKAI_VERBOSITY
  3) file          askai.settings.json in the working directory ("AskAI" section)
  4) user-secrets  OS keyring (key only)
  5) default

A broken or missing settings file, or an unreachable keyring, just means that
source has nothing to say.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

import keyring

from .config import (
    DEFAULT_MODEL,
    DEFAULT_URL,
    ENV_PREFIX,
    KEYRING_KEY,
    KEYRING_SERVICE,
    SETTINGS_FILE,
    SETTINGS_SECTION,
)
from .errors import ConfigurationError

OPTIONS = ("url", "key", "model", "custom_model", "verbosity")

# option -> key used in the environment (after ENV_PREFIX) and in the settings file
_EXTERNAL_NAMES = {
    "url": "Url",
    "key": "Key",
    "model": "Model",
    "custom_model": "CustomModel",
    "verbosity": "Verbosity",
}


class Verbosity(IntEnum):
    MINIMAL = 0
    NORMAL = 1
    DETAILED = 2
    DIAGNOSTIC = 3

    @classmethod
    def parse(cls, text: str) -> "Verbosity":
        value = (text or "").strip().lower()
        for level in cls:
            name = level.name.lower()
            if value == name:
                return level
        if value in _SHORT_FORMS:
            return _SHORT_FORMS[value]
        choices = ", ".join(level.name.lower() for level in cls)
        raise ConfigurationError(f"Invalid verbosity '{text}'. Valid values are: {choices} (or m, n, d, diag)")


_SHORT_FORMS = {
    "m": Verbosity.MINIMAL,
    "n": Verbosity.NORMAL,
    "d": Verbosity.DETAILED,
    "diag": Verbosity.DIAGNOSTIC,
}


@dataclass(frozen=True)
class Settings:
    url: str
    key: Optional[str]
    model: str
    custom_model: Optional[str]
    verbosity: Verbosity
    # Why a source had nothing to say; logged once logging is configured.
    notes: Tuple[str, ...] = ()


class Source(NamedTuple):
    name: str
    values: Mapping[str, Any]
    problem: Optional[str] = None


def resolve_option(option: str, sources: List[Source], default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty value for ``option`` across ``sources`` (in order)."""
    for source in sources:
        value = source.values.get(option)
        if value is None:
            continue
        value = str(value)
        if value.strip():
            return value
    return default


# -------- sources --------
def flag_source(flags: Mapping[str, Any]) -> Source:
    return Source("flag", {k: v for k, v in flags.items() if k in OPTIONS and v is not None})


def environment_source(environ: Optional[Mapping[str, str]] = None) -> Source:
    environ = os.environ if environ is None else environ
    values = {}
    for option, external in _EXTERNAL_NAMES.items():
        name = ENV_PREFIX + external.upper()
        if name in environ:
            values[option] = environ[name]
    return Source("environment", values)


def file_source(path: Optional[Path] = None) -> Source:
    path = Path(SETTINGS_FILE) if path is None else Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError:
        return Source("file", {})
    except (OSError, ValueError) as exc:
        return Source("file", {}, f"Settings file {path} ignored: {exc}")
    if not isinstance(data, dict):
        return Source("file", {}, f"Settings file {path} ignored: not a JSON object")

    section = _lookup(data, SETTINGS_SECTION)
    if isinstance(section, dict):
        data = section

    values = {}
    for option, external in _EXTERNAL_NAMES.items():
        value = _lookup(data, external)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            values[option] = str(value)
    return Source("file", values)


def user_secret_source() -> Source:
    try:
        key = keyring.get_password(KEYRING_SERVICE, KEYRING_KEY)
    except Exception as exc:
        # No usable backend (headless box, locked store, ...): nothing to contribute.
        return Source("user-secrets", {}, f"Keyring read failed: {exc}")
    return Source("user-secrets", {"key": key} if key else {})


def _lookup(data: Dict[str, Any], name: str) -> Any:
    if name in data:
        return data[name]
    lowered = name.lower()
    for k, v in data.items():
        if isinstance(k, str) and k.lower() == lowered:
            return v
    return None


# -------- merge --------
def load_settings(
    flags: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
    settings_path: Optional[Path] = None,
) -> Settings:
    """Merge flags, environment, settings file and keyring into one Settings."""
    sources = [
        flag_source(flags),
        environment_source(environ),
        file_source(settings_path),
    ]
    # The keyring is only consulted when nothing above supplies a key.
    if resolve_option("key", sources) is None:
        sources.append(user_secret_source())

    if flags.get("verbose"):
        verbosity = Verbosity.DIAGNOSTIC
    else:
        raw = resolve_option("verbosity", sources)
        verbosity = Verbosity.MINIMAL if raw is None else Verbosity.parse(raw)

    return Settings(
        url=resolve_option("url", sources, DEFAULT_URL),
        key=resolve_option("key", sources),
        model=resolve_option("model", sources, DEFAULT_MODEL),
        custom_model=resolve_option("custom_model", sources),
        verbosity=verbosity,
        notes=tuple(s.problem for s in sources if s.problem),
    )
