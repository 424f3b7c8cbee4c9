from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Dict

DEFAULT_WORDS_PATH = "bazbot.db"
DEFAULT_TRIGGER = "baz"
DEFAULT_MAX_CHAIN = 200


def _parse_env_file(path: Path) -> Dict[str, str]:
    """Minimal .env parser (no external dependency required)."""
    data: dict[str, str] = {}
    if not path.exists():
        return data
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip('"').strip("'")
    return data


def parse_log_level(raw: str) -> int:
    """Accept an integer verbosity or a level name (debug, info, warning, error)."""
    raw = raw.strip()
    try:
        return max(0, int(raw))
    except ValueError:
        normalized = raw.lower()
        if normalized in {"debug", "trace"}:
            return 3
        if normalized == "info":
            return 2
        if normalized in {"error", "quiet", "silent"}:
            return 0
        return 1


def parse_max_chain(raw: str, default: int = DEFAULT_MAX_CHAIN) -> int:
    """Positive iteration cap; anything unparseable falls back to ``default``."""
    try:
        return max(1, int(raw.strip()))
    except ValueError:
        return default


@dataclass(frozen=True)
class BazSettings:
    words_path: str
    trigger: str
    log_level: int
    max_chain: int
    env_file: Path | None


def load_settings(env_path: str | Path = ".env") -> BazSettings:
    """Load bazbot settings from the real environment, then .env (if present)."""
    env_file = Path(env_path)
    file_values = _parse_env_file(env_file)

    def read(key: str, default: str) -> str:
        return os.environ.get(key, file_values.get(key, default))

    words_path = read("BAZBOT_WORDS", DEFAULT_WORDS_PATH).strip() or DEFAULT_WORDS_PATH
    trigger = read("BAZBOT_TRIGGER", DEFAULT_TRIGGER).strip() or DEFAULT_TRIGGER
    log_level = parse_log_level(read("BAZBOT_LOG_LEVEL", "1"))
    max_chain = parse_max_chain(read("BAZBOT_MAX_CHAIN", str(DEFAULT_MAX_CHAIN)))

    env_file_used = env_file if env_file.exists() else None
    return BazSettings(
        words_path=words_path,
        trigger=trigger,
        log_level=log_level,
        max_chain=max_chain,
        env_file=env_file_used,
    )
