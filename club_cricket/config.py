# club_cricket/config.py
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


# -------------------------
# Persistence
# -------------------------
DATA_DIR = Path(_get_env("CLUB_DATA_DIR", str(PROJECT_ROOT / "data")))
STATE_FILE = Path(_get_env("CLUB_STATE_FILE", str(DATA_DIR / "club_state.json")))

# The whole application state lives under this single key.
STATE_KEY = "clubAppData"


# -------------------------
# Fees
# -------------------------
MATCH_FEE_PER_PLAYER: int = _get_env_int("MATCH_FEE_PER_PLAYER", 100)


# -------------------------
# Playing conditions
# -------------------------
BALLS_PER_OVER = 6
MAX_WICKETS = 10

SUPER_OVER_OVERS = 1
SUPER_OVER_WICKETS = 2

MIN_SQUAD_SIZE = 11

# A second tie-breaker that also ties ends the match tied.
MAX_TIE_BREAKERS = 2

BOWL_OUT_ROUNDS = 5
