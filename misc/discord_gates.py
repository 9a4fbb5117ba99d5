from __future__ import annotations

from typing import Any

import discord

from controller.identity import Identity
from controller.orchestrator import InteractionExpired

UNKNOWN_INTERACTION_CODE = 10062


def is_private_surface(source: Any) -> bool:
    # Works for both discord.Message and discord.Interaction.
    return getattr(source, "guild", None) is None


def conversation_key(channel: Any) -> str:
    return str(int(getattr(channel, "id", 0) or 0))


def identity_from_member(member: Any, alias_table: dict[str, tuple[str, ...]] | None = None) -> Identity:
    handle = str(getattr(member, "name", "") or "")
    display = str(getattr(member, "display_name", "") or handle)
    nickname = getattr(member, "nick", None) or None
    return Identity(
        handle=handle,
        display_name=display,
        nickname=str(nickname) if nickname else None,
        aliases=tuple((alias_table or {}).get(handle, ())),
        user_id=int(getattr(member, "id", 0) or 0) or None,
        ref=member,
    )


def roster_snapshot(guild: Any, alias_table: dict[str, tuple[str, ...]] | None = None) -> list[Identity]:
    if guild is None:
        return []
    return [
        identity_from_member(m, alias_table)
        for m in getattr(guild, "members", []) or []
        if not getattr(m, "bot", False)
    ]


async def send_direct_message(identity: Identity, text: str) -> bool:
    user = identity.ref
    if user is None:
        print(f"[DM] no gateway handle for {identity.handle!r}")
        return False
    try:
        channel = await user.create_dm()
        await channel.send(text)
        return True
    except discord.HTTPException as e:
        print(f"[DM] failed for {identity.handle!r}: {e}")
        return False


def is_expired_interaction(exc: BaseException) -> bool:
    if isinstance(exc, discord.InteractionResponded):
        return True
    return isinstance(exc, discord.NotFound) and getattr(exc, "code", None) == UNKNOWN_INTERACTION_CODE


def deferred_reply_editor(interaction: discord.Interaction):
    """Reply function for a deferred interaction; expiry surfaces as InteractionExpired."""

    async def _edit(text: str) -> None:
        try:
            await interaction.edit_original_response(content=text)
        except (discord.NotFound, discord.InteractionResponded) as e:
            if is_expired_interaction(e):
                raise InteractionExpired(str(e)) from e
            raise

    return _edit


def message_replier(message: discord.Message):
    async def _reply(text: str) -> None:
        await message.reply(text, mention_author=False)

    return _reply


async def add_reactions(message: Any, content: str, keywords) -> list[str]:
    """Best-effort keyword reactions; failures are logged and dropped."""
    low = (content or "").lower()
    added: list[str] = []
    for keyword, emoji in keywords:
        if keyword.lower() not in low:
            continue
        try:
            await message.add_reaction(emoji)
            added.append(emoji)
        except Exception as e:
            print(f"[React] could not add {emoji}: {e}")
    return added
