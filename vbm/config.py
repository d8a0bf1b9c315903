# vbm/config.py
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_bool(name: str, default: bool = False) -> bool:
    return _get_env(name, "1" if default else "0").lower() in {"1", "true", "yes", "on"}


PROJECT_ROOT = Path(__file__).resolve().parent.parent

# -------------------------
# Storage
# -------------------------
DB_PATH: Path = Path(_get_env("VBM_DB_PATH", str(PROJECT_ROOT / "data" / "vbm.db")))

# Season label written on new matches
DEFAULT_SEASON: str = _get_env("VBM_DEFAULT_SEASON", "2024")

# -------------------------
# Administration
# -------------------------
# Explicit switch for administrative writes (correcting completed matches).
# Never inferred from the state of the data.
MAINTENANCE_MODE: bool = _get_env_bool("VBM_MAINTENANCE_MODE")

# -------------------------
# Simulation
# -------------------------
# Logistic scale: strength gap that moves the home win probability from 0.5 to ~0.73
STRENGTH_SCALE: float = _get_env_float("VBM_STRENGTH_SCALE", 10.0)

# -------------------------
# API / logging
# -------------------------
LOG_LEVEL: str = _get_env("VBM_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in _get_env("VBM_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]


def maintenance_mode_enabled() -> bool:
    """Read at call time so tests and operators can flip the flag without a restart."""
    return _get_env_bool("VBM_MAINTENANCE_MODE", MAINTENANCE_MODE)


def validate_config() -> None:
    if STRENGTH_SCALE <= 0:
        raise RuntimeError("VBM_STRENGTH_SCALE must be positive")

    if LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise RuntimeError(f"VBM_LOG_LEVEL must be a logging level name (got {LOG_LEVEL!r})")

    if not DEFAULT_SEASON:
        raise RuntimeError("VBM_DEFAULT_SEASON must not be empty")
