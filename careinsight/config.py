"""
careinsight: Configuration
===========================
Engine settings read once from the environment (and an optional project-level
.env file). Values are plain module constants so callers import what they need.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ── Load .env ───────────────────────────────────────────────────────────
load_dotenv(PROJECT_ROOT / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Logging ─────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("CAREINSIGHT_LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("CAREINSIGHT_LOG_FILE", "")

# ── Similarity ──────────────────────────────────────────────────────────
DEFAULT_K = _env_int("CAREINSIGHT_DEFAULT_K", 5)
DOCTOR_DEFAULT_K = _env_int("CAREINSIGHT_DOCTOR_DEFAULT_K", 3)
BATCH_DEFAULT_K = _env_int("CAREINSIGHT_BATCH_DEFAULT_K", 3)
BATCH_CANDIDATE_LIMIT = _env_int("CAREINSIGHT_BATCH_CANDIDATE_LIMIT", 20)
SIMILARITY_EXPLAIN_THRESHOLD = _env_float("CAREINSIGHT_EXPLAIN_THRESHOLD", 0.1)

# ── Decision trees ──────────────────────────────────────────────────────
MAX_TREE_DEPTH = _env_int("CAREINSIGHT_MAX_TREE_DEPTH", 32)
DEFAULT_MOBILITY_SCORE = _env_float("CAREINSIGHT_DEFAULT_MOBILITY_SCORE", 3)

# ── Classification ──────────────────────────────────────────────────────
# When set, classifying with an untrained model raises NoTrainedLabelsError
# instead of returning the empty-label result.
STRICT_CLASSIFICATION = _env_bool("CAREINSIGHT_STRICT_CLASSIFICATION", False)
