from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    notes_dir: Path
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool
    log_level: str
    max_file_bytes: int
    show_hidden: bool
    search_max_results: int
    search_context_lines: int


def load_settings() -> Settings:
    notes_dir = Path(os.environ.get("NOTES_DIR", "./notes")).resolve()
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").strip().lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    api_debug_log = _env_bool("API_DEBUG_LOG")
    log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
    max_file_bytes = int(os.environ.get("MAX_FILE_BYTES", str(10 * 1024 * 1024)))
    show_hidden = _env_bool("SHOW_HIDDEN")
    search_max_results = int(os.environ.get("SEARCH_MAX_RESULTS", "200"))
    search_context_lines = int(os.environ.get("SEARCH_CONTEXT_LINES", "2"))
    return Settings(
        notes_dir=notes_dir,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
        log_level=log_level,
        max_file_bytes=max_file_bytes,
        show_hidden=show_hidden,
        search_max_results=search_max_results,
        search_context_lines=search_context_lines,
    )
