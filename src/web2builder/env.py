from __future__ import annotations

import os
from contextlib import suppress
from pathlib import Path

from dotenv import dotenv_values

ENV_PREFIX = "WEB2BUILDER_"
_TRUTHY = {"on", "1", "true", "yes"}


def load_env_chain(repo_root: Path) -> list[Path]:
    """
    Fill WEB2BUILDER_* settings from dotenv files.

    Precedence: process environment, then .env in cwd, then .env in the repo
    root. A variable that is set to a non-blank value is never overwritten;
    keys without the prefix are ignored. Returns the files that were read.
    """
    loaded: list[Path] = []
    candidates = [Path.cwd() / ".env", repo_root / ".env"]
    for env_path in dict.fromkeys(path.resolve() for path in candidates):
        if not env_path.is_file():
            continue
        loaded.append(env_path)
        for key, value in dotenv_values(env_path).items():
            if value is None or not key.startswith(ENV_PREFIX):
                continue
            if not os.environ.get(key, "").strip():
                os.environ[key] = value
    return loaded


def env_str(name: str, default: str) -> str:
    value = os.getenv(ENV_PREFIX + name, "").strip()
    return value or default


def env_int(name: str, default: int) -> int:
    with suppress(ValueError):
        return int(env_str(name, str(default)))
    return default


def env_float(name: str, default: float) -> float:
    with suppress(ValueError):
        return float(env_str(name, str(default)))
    return default


def env_flag(name: str, default: bool) -> bool:
    return env_str(name, "on" if default else "off").lower() in _TRUTHY
