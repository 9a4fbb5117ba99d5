from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class IntentRule:
    tag: str
    pattern: re.Pattern

    def matches(self, text: str) -> bool:
        return bool(self.pattern.search(text))


def _rule(tag: str, pattern: str) -> IntentRule:
    return IntentRule(tag=tag, pattern=re.compile(pattern, flags=re.I))


# Is this message talking to the bot? Only consulted in the designated channel.
DIRECTED_AT_BOT_RULES: tuple[IntentRule, ...] = (
    _rule("question_opener", r"^(?:what|how|when|where|why|who|can you|could you|do you|are you|will you|you)\b"),
    _rule("question_mark", r"\?\s*$"),
    _rule("request_opener", r"^(?:tell me|explain|help|answer)\b"),
    _rule("greeting", r"^(?:(?:hey|hi|hello|yo|sup)\b|สวัสดี)"),
    _rule("thanks", r"^(?:thanks|thank you|thx)\b"),
    _rule("praise", r"^(?:good|nice|cool|awesome|great)\b"),
    _rule("complaint", r"^(?:wtf|what the|omg|lol|lmao)\b"),
    _rule("self_statement", r"^(?:i think|i feel|i want|i need|i have)\b"),
    _rule("opinion_request", r"(?:what do you think|your opinion|do you agree)"),
)

# Does the message ask for a DM to be sent? Consulted everywhere.
DM_INTENT_RULES: tuple[IntentRule, ...] = (
    _rule("dm_me", r"\b(?:dm|pm|message|msg|text) me\b"),
    _rule("send_me", r"\bsend me\b"),
    _rule("send_dm", r"\bsend (?:a |an )?(?:dm|pm|direct message|private message)\b"),
    _rule("message_to", r"\b(?:send|give) (?:a |an )?(?:dm|pm|message) to\b"),
    _rule("dm_them", r"\b(?:dm|pm|message) (?:him|her|them)\b"),
    _rule("dm_opener", r"^(?:please |pls )?(?:dm|pm)\s+\S+"),
    _rule("thai_dm", r"(?:ส่งข้อความ|ทักแชท|dm\s*หา)"),
)


def match_rules(text: str, rules: Iterable[IntentRule]) -> list[str]:
    clean = (text or "").strip()
    if not clean:
        return []
    return [rule.tag for rule in rules if rule.matches(clean)]


def mentions_bot_name(text: str, bot_names: Iterable[str]) -> bool:
    low = (text or "").lower()
    return any(name and name.lower() in low for name in bot_names)


def engagement_reasons(
    text: str,
    *,
    is_private: bool,
    mentioned: bool,
    in_designated_channel: bool,
    bot_names: Iterable[str] = (),
) -> list[str]:
    """Tags explaining why a plain message should be answered; empty means stay quiet."""
    if is_private:
        return ["private"]

    reasons: list[str] = []
    if mentioned:
        reasons.append("ping")
    if mentions_bot_name(text, bot_names):
        reasons.append("bot_name")
    if in_designated_channel:
        reasons.extend(match_rules(text, DIRECTED_AT_BOT_RULES))
    reasons.extend(match_rules(text, DM_INTENT_RULES))
    return reasons


def should_engage(
    text: str,
    *,
    is_private: bool,
    mentioned: bool,
    in_designated_channel: bool,
    bot_names: Iterable[str] = (),
) -> bool:
    return bool(
        engagement_reasons(
            text,
            is_private=is_private,
            mentioned=mentioned,
            in_designated_channel=in_designated_channel,
            bot_names=bot_names,
        )
    )


def strip_bot_mentions(text: str, bot_user_id: int | None = None) -> str:
    # Only the bot's own mention is removed.
    if bot_user_id is None:
        return (text or "").strip()
    return re.sub(rf"<@!?\s*{int(bot_user_id)}\s*>", "", text or "").strip()
