from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from config.defaults import (
    DEFAULT_ACTION_DIGEST_SIZE,
    DEFAULT_BOT_NAMES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DISCORD_MAX_MESSAGE_LEN,
    TRUNCATION_MARKER,
)
from controller.action_log import ActionLog, ActionRecord
from controller.directive_parser import Directive, extract_directive
from controller.history_store import HistoryStore
from controller.identity import Identity, find_member
from controller.prompt_assembly import build_context, to_chat_messages
from misc.mention_routes import engagement_reasons, strip_bot_mentions

# Turn lifecycle
RECEIVED = "received"
ENGAGEMENT_DECIDED = "engagement_decided"
CONTEXT_BUILT = "context_built"
MODEL_INVOKED = "model_invoked"
DIRECTIVE_RESOLVED = "directive_resolved"
HISTORY_COMMITTED = "history_committed"
REPLIED = "replied"
FAILED = "failed"

NOT_CONFIGURED_REPLY = "❌ OpenRouter API key not configured!"
EMPTY_PROMPT_REPLY = "Hi! Ask me anything!"
CONFUSED_REPLY = "🤔 I got a bit confused there. Could you try asking again?"
MODEL_FAILURE_REPLY = "❌ Sorry, I couldn't get an answer out of my brain just now. Try again in a bit."
ERROR_REPLY = "❌ Sorry, I encountered an error while processing your request."
PRIVATE_DIRECTIVE_REPLY = "I can't message other people from a private chat. Ask me in the server instead."

SELF_TARGETS = {"me"}


class InteractionExpired(Exception):
    """The gateway will not accept another reply for this event."""


@dataclass
class ConversationState:
    history: HistoryStore = field(default_factory=HistoryStore)
    action_log: ActionLog = field(default_factory=ActionLog)
    # guild_id -> designated channel_id
    designated_channels: dict[int, int] = field(default_factory=dict)

    def is_designated(self, guild_id: int | None, channel_id: int | None) -> bool:
        if guild_id is None or channel_id is None:
            return False
        return self.designated_channels.get(int(guild_id)) == int(channel_id)

    def set_designated(self, guild_id: int, channel_id: int, enable: bool) -> None:
        if enable:
            self.designated_channels[int(guild_id)] = int(channel_id)
        else:
            self.designated_channels.pop(int(guild_id), None)


@dataclass
class TurnRequest:
    conversation_key: str
    text: str
    author: Identity
    is_private: bool
    reply: Callable[[str], Awaitable[Any]]
    fetch_roster: Callable[[], list[Identity]] | None = None
    send_direct_message: Callable[[Identity, str], Awaitable[bool]] | None = None
    typing: Callable[[], Any] | None = None
    bot_user_id: int | None = None
    heading: str = ""


@dataclass
class TurnOutcome:
    state: str
    reply_text: str = ""
    delivered: bool = False
    directive: Directive | None = None
    action: ActionRecord | None = None
    error: str | None = None


def truncate_reply(text: str, limit: int = DISCORD_MAX_MESSAGE_LEN, marker: str = TRUNCATION_MARKER) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    keep = max(0, limit - len(marker))
    return text[:keep] + marker


def dm_status_message(directive: Directive, success: bool) -> str:
    to_self = directive.target.strip().lower() in SELF_TARGETS
    if success:
        return "📩 I sent you a DM!" if to_self else f"📩 I sent {directive.target} a DM!"
    if to_self:
        return "❌ Couldn't send you a DM - you might have them disabled."
    return f"❌ Couldn't DM {directive.target} (user not found or DMs disabled)."


class ResponseOrchestrator:
    def __init__(
        self,
        *,
        state: ConversationState,
        client: Any,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        alias_table: dict[str, tuple[str, ...]] | None = None,
        bot_names: tuple[str, ...] = DEFAULT_BOT_NAMES,
        digest_size: int = DEFAULT_ACTION_DIGEST_SIZE,
        max_reply_chars: int = DISCORD_MAX_MESSAGE_LEN,
    ):
        self.state = state
        self.client = client
        self.model = model
        self.max_tokens = int(max_tokens)
        self.temperature = float(temperature)
        self.alias_table = dict(alias_table or {})
        self.bot_names = tuple(bot_names)
        self.digest_size = int(digest_size)
        self.max_reply_chars = int(max_reply_chars)

    # ----- engagement -----
    def engagement_reasons(
        self,
        text: str,
        *,
        is_private: bool,
        mentioned: bool,
        guild_id: int | None,
        channel_id: int | None,
    ) -> list[str]:
        return engagement_reasons(
            text,
            is_private=is_private,
            mentioned=mentioned,
            in_designated_channel=self.state.is_designated(guild_id, channel_id),
            bot_names=self.bot_names,
        )

    def should_engage(self, text: str, **kwargs) -> bool:
        return bool(self.engagement_reasons(text, **kwargs))

    def observe(self, key: str, text: str, speaker: str | None, *, is_private: bool = False) -> None:
        """Record a message the bot did not answer so later turns can see it."""
        clean = (text or "").strip()
        if clean:
            self.state.history.append(key, "user", clean, speaker, is_private=is_private)

    # ----- turn execution -----
    async def process_turn(self, request: TurnRequest) -> TurnOutcome:
        key = str(request.conversation_key)
        surface = "private" if request.is_private else "shared"
        outcome = TurnOutcome(state=RECEIVED)
        try:
            outcome = await self._run_turn(request, outcome)
        except Exception as e:
            print(f"[Turn] key={key} unexpected error: {e!r}")
            outcome.state = FAILED
            outcome.error = str(e)
            outcome.reply_text = ERROR_REPLY
            outcome.delivered = await self._deliver_safely(request, ERROR_REPLY)
        print(
            f"[Turn] key={key} surface={surface} state={outcome.state} "
            f"delivered={outcome.delivered} directive={'yes' if outcome.directive else 'no'}"
        )
        return outcome

    async def _run_turn(self, request: TurnRequest, outcome: TurnOutcome) -> TurnOutcome:
        key = str(request.conversation_key)
        outcome.state = ENGAGEMENT_DECIDED

        if self.client is None:
            return await self._finish_failed(request, outcome, NOT_CONFIGURED_REPLY, "not_configured")

        question = strip_bot_mentions(request.text, request.bot_user_id)
        if not question:
            return await self._finish_failed(request, outcome, EMPTY_PROMPT_REPLY, "empty_prompt")

        history = self.state.history
        history.ensure(key, request.is_private)
        history.append(key, "user", question, _speaker_label(request.author), is_private=request.is_private)

        turns = build_context(
            history,
            self.state.action_log,
            key,
            self._roster(request),
            is_private=request.is_private,
            alias_table=self.alias_table,
            digest_size=self.digest_size,
        )
        outcome.state = CONTEXT_BUILT

        try:
            raw = await self._complete(to_chat_messages(turns), request)
        except Exception as e:
            print(f"[OpenAI] key={key} completion error: {e!r}")
            return await self._finish_failed(request, outcome, MODEL_FAILURE_REPLY, str(e))
        outcome.state = MODEL_INVOKED

        if not raw.strip():
            return await self._finish_failed(request, outcome, CONFUSED_REPLY, "empty_model_output")

        directive, cleaned = extract_directive(raw)
        if directive is not None:
            outcome.directive = directive
            if request.is_private:
                print(f"[DM] key={key} ignoring directive on private surface target={directive.target!r}")
                if not cleaned:
                    cleaned = PRIVATE_DIRECTIVE_REPLY
            else:
                roster = self._roster(request)
                if roster is not None and request.send_direct_message is not None:
                    outcome.action = await self._execute_directive(key, directive, request, roster)
                    if not cleaned:
                        cleaned = dm_status_message(directive, outcome.action.success)
                    elif not outcome.action.success:
                        cleaned = f"{cleaned}\n{dm_status_message(directive, False)}"
        outcome.state = DIRECTIVE_RESOLVED

        if not cleaned.strip():
            return await self._finish_failed(request, outcome, CONFUSED_REPLY, "empty_after_directive")

        history.append(key, "assistant", cleaned, is_private=request.is_private)
        outcome.state = HISTORY_COMMITTED

        text = truncate_reply(f"{request.heading}{cleaned}", self.max_reply_chars)
        outcome.reply_text = text
        outcome.delivered = await self._deliver(request, text)
        outcome.state = REPLIED
        return outcome

    async def _complete(self, messages: list[dict], request: TurnRequest) -> str:
        typing_cm = request.typing() if request.typing is not None else contextlib.nullcontext()
        async with typing_cm:
            resp = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        if not getattr(resp, "choices", None):
            return ""
        return resp.choices[0].message.content or ""

    async def _execute_directive(
        self,
        key: str,
        directive: Directive,
        request: TurnRequest,
        roster: list[Identity],
    ) -> ActionRecord:
        if directive.target.strip().lower() in SELF_TARGETS:
            member = request.author
        else:
            member = find_member(roster, directive.target, self.alias_table)

        success = False
        error_detail: str | None = None
        if member is None:
            error_detail = "user not found"
        else:
            try:
                success = bool(await request.send_direct_message(member, directive.payload))
                if not success:
                    error_detail = "DMs disabled or send rejected"
            except Exception as e:
                error_detail = str(e) or type(e).__name__

        recipient = member.display_name if member is not None else directive.target
        record = self.state.action_log.record(
            recipient,
            directive.payload,
            success=success,
            error_detail=error_detail,
        )
        if success:
            note = f'[DM_SUCCESS: Message "{directive.payload}" sent to {directive.target}]'
        else:
            note = f'[DM_FAILED: Could not send message "{directive.payload}" to {directive.target} ({error_detail})]'
        self.state.history.append(key, "system", note, is_private=request.is_private)
        print(f"[DM] key={key} target={directive.target!r} resolved={recipient!r} outcome={record.outcome}")
        return record

    def _roster(self, request: TurnRequest) -> list[Identity] | None:
        if request.is_private or request.fetch_roster is None:
            return None
        return list(request.fetch_roster())

    async def _finish_failed(self, request: TurnRequest, outcome: TurnOutcome, text: str, error: str) -> TurnOutcome:
        outcome.state = FAILED
        outcome.error = error
        outcome.reply_text = text
        outcome.delivered = await self._deliver(request, text)
        return outcome

    async def _deliver(self, request: TurnRequest, text: str) -> bool:
        try:
            await request.reply(text)
            return True
        except InteractionExpired as e:
            print(f"[Turn] key={request.conversation_key} interaction expired; not replying again: {e}")
            return False

    async def _deliver_safely(self, request: TurnRequest, text: str) -> bool:
        try:
            return await self._deliver(request, text)
        except Exception as e:
            print(f"[Turn] key={request.conversation_key} fallback reply failed: {e!r}")
            return False


def _speaker_label(author: Identity) -> str:
    return author.display_name or author.handle
