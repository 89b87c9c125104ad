from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from euvalley.geocoder import DEFAULT_USER_AGENT

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CACHE_FILE = BASE_DIR / "data" / "local_cache.json"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def load_env_file(base_dir: Path, filename: str = ".env") -> None:
    """Load simple KEY=VALUE pairs from a local .env file.

    Existing environment variables are preserved.
    """
    candidates: list[Path] = [base_dir / filename]
    # When running inside a git worktree, prefer local .env first but allow root fallback.
    if base_dir.parent.name == ".worktrees":
        candidates.append(base_dir.parent.parent / filename)

    for env_path in candidates:
        if not env_path.exists():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key:
                os.environ.setdefault(key, value)


def _env(name: str) -> str:
    return os.getenv(name, "").strip()


@dataclass(slots=True)
class Settings:
    blob_dir: Path | None = None
    cache_file: Path = DEFAULT_CACHE_FILE
    api_url: str | None = None
    admin_password: str = ""
    geocoder_user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        blob_dir = _env("EU_VALLEY_BLOB_DIR")
        cache_file = _env("EU_VALLEY_CACHE_FILE")
        return cls(
            blob_dir=Path(blob_dir) if blob_dir else None,
            cache_file=Path(cache_file) if cache_file else DEFAULT_CACHE_FILE,
            api_url=_env("EU_VALLEY_API_URL") or None,
            admin_password=_env("ADMIN_PASSWORD"),
            geocoder_user_agent=_env("NOMINATIM_USER_AGENT") or DEFAULT_USER_AGENT,
            log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
