from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional


def default_vault_path() -> Path:
    """Where the vault lives when --vault is not given.

    DEADLINEVAULT_PATH wins; otherwise a vault.json kept in ~/.deadlinevault.
    """
    env = os.getenv("DEADLINEVAULT_PATH")
    if env:
        return Path(env).expanduser().resolve()

    return (Path.home() / ".deadlinevault" / "vault.json").resolve()


def log_level() -> int:
    """DEADLINEVAULT_LOG_LEVEL as a logging level; unknown names fall back to WARNING."""
    name = os.getenv("DEADLINEVAULT_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(name) if name else logging.WARNING
    return level if isinstance(level, int) else logging.WARNING


def log_file() -> Optional[Path]:
    env = os.getenv("DEADLINEVAULT_LOG_FILE")
    if env:
        return Path(env).expanduser().resolve()
    return None
