"""
CosmosMind Configuration
Every engine constant in one place. Override through COSMOS_* environment variables.
"""

import os
from pathlib import Path

# ── Identity ─────────────────────────────────────────────
SERVER_NAME = "cosmosmind"
SERVER_VERSION = "1.0.0"
SAVE_VERSION = "1.0.0"

# ── Paths ────────────────────────────────────────────────
COSMOS_HOME = Path(os.environ.get("COSMOS_HOME", Path.home() / ".cosmosmind"))
SAVE_PATH = COSMOS_HOME / "save.json"
LOG_FILE = COSMOS_HOME / "cosmosmind.log"

# ── Logging ──────────────────────────────────────────────
LOG_LEVEL = os.environ.get("COSMOS_LOG_LEVEL", "INFO").upper()
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3
SLOW_OPERATION_MS = float(os.environ.get("COSMOS_SLOW_MS", "250"))

# ── Canvas (resolver geometry) ───────────────────────────
CANVAS_WIDTH = float(os.environ.get("COSMOS_CANVAS_WIDTH", "390"))
CANVAS_HEIGHT = float(os.environ.get("COSMOS_CANVAS_HEIGHT", "844"))
SHAPE_AREA_TOP = 0.25          # fraction of canvas height where the play area starts
SHAPE_AREA_FRACTION = 0.45     # fraction of canvas height the play area covers

# ── Scoring ──────────────────────────────────────────────
SCORE_BASE_POINTS = int(os.environ.get("COSMOS_SCORE_BASE", "100"))
STREAK_MULTIPLIER_MAX = 3.0
STREAK_MULTIPLIER_INCREMENT = 0.25
SPEED_BONUS_MAX = 50
ACCURACY_BONUS_MAX = 30
DIFFICULTY_MULTIPLIER_RANGE = (0.8, 2.0)
COMBO_THRESHOLD = 3
COMBO_BONUS_PER_STEP = 25
PERFECT_ROUND_BONUS = 200
DEFAULT_TIME_LIMIT_SEC = float(os.environ.get("COSMOS_TIME_LIMIT", "10"))

# ── Adaptive Difficulty ──────────────────────────────────
TARGET_SUCCESS_RATE = float(os.environ.get("COSMOS_TARGET_SUCCESS", "0.70"))
ADAPTATION_GAIN = float(os.environ.get("COSMOS_ADAPTATION_GAIN", "0.15"))
SHAPE_COUNT_DEADBAND = 0.1     # |error| must exceed this before shape count moves
OUTCOME_HISTORY_SIZE = 20
RECENT_WINDOW = 10
NOISE_STEP = 0.02
NOISE_MIN_ROUNDS = 20          # rounds of history before noise may rise
NOISE_ACCURACY_GATE = 0.8
DISTRACTOR_SUCCESS_GATE = 0.85

# ── Profile ──────────────────────────────────────────────
SESSION_HISTORY_CAP = 100
REACTION_WINDOW = 20           # sessions feeding the reaction profile
TREND_WINDOW = 5
TREND_THRESHOLD = 0.05
SPEED_BONUS_THRESHOLD = 50     # speed score above which the skill bonus applies
SKILL_SPEED_BONUS = 0.5

# ── Insights ─────────────────────────────────────────────
REFLECTION_INSIGHTS = 3
TRIAL_FEEDBACK_CHANCE = 0.15

# ── Storage ──────────────────────────────────────────────
SAVE_DEBOUNCE_SEC = float(os.environ.get("COSMOS_SAVE_DEBOUNCE", "1.0"))

# ── Universe ─────────────────────────────────────────────
CHAMBER_PASS_ACCURACY = 0.70   # session accuracy that clears a chamber


def ensure_home():
    """Create the CosmosMind home directory if it doesn't exist."""
    COSMOS_HOME.mkdir(parents=True, exist_ok=True)
