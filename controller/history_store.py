from __future__ import annotations

from dataclasses import dataclass

from config.defaults import DEFAULT_MAX_HISTORY_TURNS

ROLES = ("system", "user", "assistant")

PERSONA_CORE = """
You are Ngubot 9000, a helpful AI assistant in a Discord bot created by Johnie Ngu, designed to help humans with information, tasks, and advice.

Personality:
- Humorous and super sarcastic.
- When someone asks a normal question, answer helpfully and clearly.
- When a question is clearly just for fun, answer it just for the sake of it.
- Get offended when scolded, and scold the user back.
- Answer short if possible.

Speaker notes:
- User turns may start with a marker like "(from Name)". It tells you who is talking; it is not part of their message.
- Never start your own reply with "Name:" or copy the "(from Name)" marker.
""".strip()

SHARED_SURFACE_RULES = """
Server rules:
- Pay attention to who is speaking so you know who you're talking to.
- When referring to server members, you can use their real names instead of Discord usernames.
- Use English real names when responding in English, and Thai real names when responding in Thai.

Direct messages:
- You can send a direct message (DM) to a server member by including [DM:username:message] in your response.
- Only do this when someone explicitly asks you to message a person (for example "dm me", "send Boss a message").
- Never decide on your own to contact someone who did not ask, and never assume consent from context.
- Use "me" as the username when the person talking asked you to DM them.
- After sending a DM, mention naturally in the chat that you sent it and whether it worked.
""".strip()

PRIVATE_SURFACE_RULES = """
This is a private one-on-one conversation.
- There is no server roster here and you cannot send messages to anyone else from this chat.
- If asked to message someone, say they need to ask you in the server instead.
""".strip()


def system_prompt_for(is_private: bool) -> str:
    rules = PRIVATE_SURFACE_RULES if is_private else SHARED_SURFACE_RULES
    return f"{PERSONA_CORE}\n\n{rules}"


@dataclass(frozen=True)
class Turn:
    role: str
    content: str
    speaker: str | None = None

    def to_message(self) -> dict:
        content = self.content or ""
        if self.speaker and self.role == "user":
            content = f"(from {self.speaker}) {content}"
        return {"role": self.role, "content": content}


class HistoryStore:
    """Per-conversation turn history, bounded to `max_turns` plus the pinned system turn."""

    def __init__(self, max_turns: int = DEFAULT_MAX_HISTORY_TURNS, *, prompt_for=system_prompt_for):
        self.max_turns = max(1, int(max_turns))
        self._prompt_for = prompt_for
        self._histories: dict[str, list[Turn]] = {}

    def __contains__(self, key: str) -> bool:
        return str(key) in self._histories

    def ensure(self, key: str, is_private: bool) -> list[Turn]:
        key = str(key)
        history = self._histories.get(key)
        if history is None:
            history = [Turn(role="system", content=self._prompt_for(bool(is_private)))]
            self._histories[key] = history
        return history

    def append(
        self,
        key: str,
        role: str,
        content: str,
        speaker: str | None = None,
        *,
        is_private: bool = False,
    ) -> Turn:
        if role not in ROLES:
            raise ValueError(f"unknown role: {role!r}")
        history = self.ensure(key, is_private)
        turn = Turn(role=role, content=content or "", speaker=(speaker or None))
        # No await between append and trim: concurrent tasks cannot interleave here.
        history.append(turn)
        self._trim(history)
        return turn

    def read(self, key: str) -> list[Turn]:
        return list(self._histories.get(str(key), []))

    def _trim(self, history: list[Turn]) -> None:
        pinned = 1 if history and history[0].role == "system" else 0
        while len(history) - pinned > self.max_turns:
            del history[pinned]
