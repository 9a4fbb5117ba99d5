from __future__ import annotations

import asyncio

import discord
from discord.ext import commands

from controller.orchestrator import TurnRequest
from misc.discord_gates import add_reactions
from misc.discord_gates import conversation_key
from misc.discord_gates import identity_from_member
from misc.discord_gates import is_private_surface
from misc.discord_gates import message_replier
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def build_message_turn(message: discord.Message, *, deps: RuntimeDeps, bot_user_id: int | None) -> TurnRequest:
    guild = message.guild
    is_private = guild is None
    fetch_roster = None if is_private else (lambda: deps.roster_snapshot(guild, deps.alias_table))
    return TurnRequest(
        conversation_key=conversation_key(message.channel),
        text=message.content or "",
        author=identity_from_member(message.author, deps.alias_table),
        is_private=is_private,
        reply=message_replier(message),
        fetch_roster=fetch_roster,
        send_direct_message=deps.send_direct_message,
        typing=message.channel.typing,
        bot_user_id=bot_user_id,
    )


def _invokes_command(bot: commands.Bot, content: str) -> bool:
    # Only a registered command name after the prefix counts; other "!" text is chat.
    text = content.lstrip()
    if not text.startswith("!"):
        return False
    parts = text[1:].split()
    return bool(parts) and bot.get_command(parts[0]) is not None


async def _sync_commands(bot: commands.Bot, guild_id: int | None) -> None:
    try:
        if guild_id:
            guild = discord.Object(id=int(guild_id))
            bot.tree.copy_global_to(guild=guild)
            synced = await bot.tree.sync(guild=guild)
            print(f"[Commands] synced {len(synced)} slash commands to guild {guild_id}")
        else:
            synced = await bot.tree.sync()
            print(f"[Commands] synced {len(synced)} global slash commands")
    except Exception as e:
        print(f"[Commands] error registering slash commands: {e}")


def register_runtime_events(
    bot: commands.Bot,
    *,
    deps: RuntimeDeps,
    boot: RuntimeBootDeps,
) -> None:
    @bot.event
    async def on_ready():
        print(f"[Bot] Logged in as {bot.user}")

        if not getattr(bot, "_commands_synced", False):
            bot._commands_synced = True
            await _sync_commands(bot, boot.command_guild_id)

        if boot.health_enabled and not getattr(bot, "_health_runner", None):
            try:
                bot._health_runner = await boot.health_server_func()
            except Exception as e:
                print(f"[Health] could not start health server: {e}")

        if boot.keepalive_enabled and not getattr(bot, "_keepalive_task", None):
            bot._keepalive_task = asyncio.create_task(boot.keepalive_loop_func())
            print("[Keepalive] self-ping loop started")

    @bot.event
    async def on_message(message: discord.Message):
        if message.author.bot:
            return

        content = message.content or ""
        await add_reactions(message, content, deps.reaction_keywords)

        if _invokes_command(bot, content):
            await bot.process_commands(message)
            return

        is_private = is_private_surface(message)
        guild_id = int(message.guild.id) if message.guild else None
        channel_id = int(getattr(message.channel, "id", 0) or 0)
        reasons = deps.orchestrator.engagement_reasons(
            content,
            is_private=is_private,
            mentioned=bool(bot.user and bot.user in message.mentions),
            guild_id=guild_id,
            channel_id=channel_id,
        )

        if not reasons:
            if deps.passive_history and not is_private:
                deps.orchestrator.observe(
                    conversation_key(message.channel),
                    content,
                    getattr(message.author, "display_name", None) or message.author.name,
                )
            return

        print(f"[Turn] channel={channel_id} author={message.author.id} reasons={','.join(reasons)}")
        bot_user_id = int(bot.user.id) if bot.user else None
        await deps.orchestrator.process_turn(build_message_turn(message, deps=deps, bot_user_id=bot_user_id))
