import os
import traceback
from functools import partial

import discord
from discord.ext import commands
from openai import OpenAI

from config.defaults import DEFAULT_ACTION_DIGEST_SIZE
from config.defaults import DEFAULT_ACTION_LOG_CAP
from config.defaults import DEFAULT_API_BASE_URL
from config.defaults import DEFAULT_BOT_NAMES
from config.defaults import DEFAULT_HEALTH_PORT
from config.defaults import DEFAULT_KEEPALIVE_INTERVAL_SECONDS
from config.defaults import DEFAULT_MAX_HISTORY_TURNS
from config.defaults import DEFAULT_MAX_TOKENS
from config.defaults import DEFAULT_MODEL
from config.defaults import DEFAULT_REQUEST_TIMEOUT_SECONDS
from config.defaults import DEFAULT_TEMPERATURE
from config.defaults import DISCORD_MAX_MESSAGE_LEN
from config.defaults import REACTION_KEYWORDS
from controller.action_log import ActionLog
from controller.history_store import HistoryStore
from controller.identity import load_alias_table
from controller.orchestrator import ConversationState
from controller.orchestrator import ResponseOrchestrator
from jobs.keepalive import keepalive_loop
from jobs.keepalive import start_health_server
from misc.discord_gates import roster_snapshot
from misc.discord_gates import send_direct_message
from misc.runtime_wiring import wire_bot_runtime

# =========================
# ENV
# =========================
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")

if not DISCORD_BOT_TOKEN:
    raise RuntimeError("Missing DISCORD_BOT_TOKEN env var")
if not OPENROUTER_API_KEY:
    print("[CFG] OPENROUTER_API_KEY not set; chat replies will report 'not configured'")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)).strip())
    except ValueError:
        print(f"[CFG] invalid {name}; falling back to {default}")
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)).strip())
    except ValueError:
        print(f"[CFG] invalid {name}; falling back to {default}")
        return default


# =========================
# LLM
# =========================
MODEL = os.getenv("NGUBOT_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL
API_BASE_URL = os.getenv("NGUBOT_API_BASE_URL", DEFAULT_API_BASE_URL).strip() or DEFAULT_API_BASE_URL
MAX_TOKENS = _env_int("NGUBOT_MAX_TOKENS", DEFAULT_MAX_TOKENS)
TEMPERATURE = _env_float("NGUBOT_TEMPERATURE", DEFAULT_TEMPERATURE)
REQUEST_TIMEOUT_SECONDS = _env_float("NGUBOT_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS)

client = (
    OpenAI(api_key=OPENROUTER_API_KEY, base_url=API_BASE_URL, timeout=REQUEST_TIMEOUT_SECONDS)
    if OPENROUTER_API_KEY
    else None
)

# =========================
# CONVERSATION STATE
# =========================
MAX_HISTORY_TURNS = _env_int("NGUBOT_MAX_HISTORY_TURNS", DEFAULT_MAX_HISTORY_TURNS)
ACTION_LOG_CAP = _env_int("NGUBOT_ACTION_LOG_CAP", DEFAULT_ACTION_LOG_CAP)
ACTION_DIGEST_SIZE = _env_int("NGUBOT_ACTION_DIGEST_SIZE", DEFAULT_ACTION_DIGEST_SIZE)
PASSIVE_HISTORY = os.getenv("NGUBOT_PASSIVE_HISTORY", "1").strip() == "1"

BOT_NAMES = tuple(
    n.strip().lower()
    for n in os.getenv("NGUBOT_BOT_NAMES", ",".join(DEFAULT_BOT_NAMES)).split(",")
    if n.strip()
) or DEFAULT_BOT_NAMES

ALIASES_PATH = os.getenv(
    "NGUBOT_ALIASES_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "config", "aliases.yml"),
)
ALIAS_TABLE, ALIASES_WARNING = load_alias_table(ALIASES_PATH)
if ALIASES_WARNING:
    print(f"[CFG] {ALIASES_WARNING}")

print(
    f"[CFG] model={MODEL} base_url={API_BASE_URL} max_tokens={MAX_TOKENS} temperature={TEMPERATURE} "
    f"timeout_s={REQUEST_TIMEOUT_SECONDS} history_turns={MAX_HISTORY_TURNS} action_log_cap={ACTION_LOG_CAP} "
    f"passive_history={PASSIVE_HISTORY} aliases={len(ALIAS_TABLE)} bot_names={','.join(BOT_NAMES)}"
)

# =========================
# BOOTSTRAP PLUMBING
# =========================
_guild_raw = os.getenv("NGUBOT_COMMAND_GUILD_ID", "").strip()
COMMAND_GUILD_ID = int(_guild_raw) if _guild_raw.isdigit() else None
HEALTH_ENABLED = os.getenv("NGUBOT_HEALTH_ENABLED", "1").strip() == "1"
HEALTH_PORT = _env_int("PORT", DEFAULT_HEALTH_PORT)
KEEPALIVE_URL = os.getenv("NGUBOT_KEEPALIVE_URL", "").strip()
KEEPALIVE_INTERVAL_SECONDS = _env_int("NGUBOT_KEEPALIVE_INTERVAL_SECONDS", DEFAULT_KEEPALIVE_INTERVAL_SECONDS)

print(
    f"[CFG] command_guild={COMMAND_GUILD_ID or '(global)'} health={HEALTH_ENABLED} port={HEALTH_PORT} "
    f"keepalive={'on' if KEEPALIVE_URL else 'off'} keepalive_s={KEEPALIVE_INTERVAL_SECONDS}"
)

state = ConversationState(
    history=HistoryStore(MAX_HISTORY_TURNS),
    action_log=ActionLog(ACTION_LOG_CAP),
)

orchestrator = ResponseOrchestrator(
    state=state,
    client=client,
    model=MODEL,
    max_tokens=MAX_TOKENS,
    temperature=TEMPERATURE,
    alias_table=ALIAS_TABLE,
    bot_names=BOT_NAMES,
    digest_size=ACTION_DIGEST_SIZE,
    max_reply_chars=DISCORD_MAX_MESSAGE_LEN,
)

# =========================
# DISCORD BOT
# =========================
intents = discord.Intents.default()
intents.message_content = True
intents.members = True
intents.presences = True

bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

wire_bot_runtime(
    bot,
    orchestrator=orchestrator,
    state=state,
    alias_table=ALIAS_TABLE,
    roster_snapshot=roster_snapshot,
    send_direct_message=send_direct_message,
    reaction_keywords=REACTION_KEYWORDS,
    passive_history=PASSIVE_HISTORY,
    bot_display_name="Ngubot",
    max_message_len=DISCORD_MAX_MESSAGE_LEN,
    command_guild_id=COMMAND_GUILD_ID,
    health_enabled=HEALTH_ENABLED,
    health_server_func=partial(start_health_server, port=HEALTH_PORT),
    keepalive_enabled=bool(KEEPALIVE_URL),
    keepalive_loop_func=partial(keepalive_loop, url=KEEPALIVE_URL, interval_seconds=KEEPALIVE_INTERVAL_SECONDS),
)


@bot.event
async def on_error(event_method: str, *args, **kwargs):
    print(f"[Bot] unhandled error in {event_method}")
    traceback.print_exc()


bot.run(DISCORD_BOT_TOKEN)
