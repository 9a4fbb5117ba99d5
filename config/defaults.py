from __future__ import annotations

# =========================
# LLM
# =========================
DEFAULT_MODEL = "meta-llama/llama-4-maverick:free"
DEFAULT_API_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0

# =========================
# CONVERSATION STATE
# =========================
DEFAULT_MAX_HISTORY_TURNS = 20  # excludes the system turn
DEFAULT_ACTION_LOG_CAP = 200
DEFAULT_ACTION_DIGEST_SIZE = 5

DISCORD_MAX_MESSAGE_LEN = 1900  # keep under 2000 hard limit
TRUNCATION_MARKER = "..."

# =========================
# IDENTITY
# =========================
DEFAULT_BOT_NAMES = ("ngubot", "งูบอท")

# Discord username -> real names (English first, then Thai).
DEFAULT_MEMBER_ALIASES: dict[str, list[str]] = {
    "HappyBT": ["Boss", "บอส"],
    "Dr. Feelgood": ["Pun", "ปั้น"],
    "padkapaow": ["Tun", "ตั้น"],
    "BoonP1": ["Boon", "บุ๋น"],
    "orengipratuu": ["Faye", "ฟาเย่"],
    "imminicosmic": ["Mini", "มินิ"],
    "keffv1": ["Kevin", "เควิน"],
    "keyfungus": ["Ngu", "งู"],
    "soybeant0fu": ["Pookpik", "ปุ๊กปิ๊ก"],
    "ยักcute": ["Geng", "เก่ง"],
    "ํืUnclejoe": ["Aim", "เอม"],
}

# =========================
# REACTIONS
# =========================
REACTION_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("ice", "🥶"),
    ("งู", "🐍"),
)

# =========================
# KEEPALIVE
# =========================
DEFAULT_HEALTH_PORT = 3000
DEFAULT_KEEPALIVE_INTERVAL_SECONDS = 300
