from __future__ import annotations

import random

import discord
from discord import app_commands
from discord.ext import commands

from controller.orchestrator import TurnRequest
from controller.orchestrator import truncate_reply
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.discord_gates import identity_from_member
from misc.discord_gates import is_expired_interaction

SLASH_COMMANDS_HELP = "`/hello`, `/ask`, `/roll`, `/members`, `/dm`, `/setchannel`"
GUILD_ONLY_REPLY = "This command only works inside a server."
# Longest question quoted back in the /ask heading.
ASK_QUOTE_MAX_CHARS = 300


def format_roll(dice: int, sides: int, results: list[int]) -> str:
    header = f"🎲 Rolling {dice}d{sides}:\n"
    if dice == 1:
        return header + f"**Result:** {results[0]}"
    return header + f"**Rolls:** [{', '.join(str(r) for r in results)}]\n**Total:** {sum(results)}"


def format_member_list(roster, limit: int) -> str:
    lines = []
    for member in roster:
        line = f"**{member.display_name}**"
        if member.nickname and member.nickname != member.handle:
            line += f" ({member.handle})"
        lines.append(line)
    text = f"**Server Members ({len(lines)}):**\n" + "\n".join(lines)
    if len(text) > limit:
        return truncate_reply(text, limit, marker="\n\n*List truncated*")
    return text


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    name = deps.bot_display_name

    @bot.command(name="help")
    async def help_command(ctx: commands.Context):
        hint = "or just chat normally!" if gates.in_designated_channel(ctx) else f"mention @{name} with your question!"
        await ctx.reply(f"Use slash commands: {SLASH_COMMANDS_HELP}, {hint}", mention_author=False)

    @bot.tree.command(name="hello", description="Says hello to you!")
    async def hello(interaction: discord.Interaction):
        await interaction.response.send_message(f"Hello {interaction.user.name}! 👋")

    @bot.tree.command(name="ask", description=f"Ask {name} a question")
    @app_commands.describe(question=f"Your question for {name}")
    async def ask(interaction: discord.Interaction, question: str):
        try:
            await interaction.response.defer()
        except (discord.NotFound, discord.InteractionResponded) as e:
            if is_expired_interaction(e):
                print(f"[Commands] /ask interaction expired before defer: {e}")
                return
            raise

        guild = interaction.guild
        is_private = guild is None
        fetch_roster = None if is_private else (lambda: deps.roster_snapshot(guild, deps.alias_table))

        request = TurnRequest(
            conversation_key=str(int(interaction.channel_id or 0)),
            text=question,
            author=identity_from_member(interaction.user, deps.alias_table),
            is_private=is_private,
            reply=deps.deferred_reply_editor(interaction),
            fetch_roster=fetch_roster,
            send_direct_message=deps.send_direct_message,
            bot_user_id=int(bot.user.id) if bot.user else None,
            heading=f"**Question:** {truncate_reply(question, ASK_QUOTE_MAX_CHARS)}\n\n**{name}:** ",
        )
        await deps.orchestrator.process_turn(request)

    @bot.tree.command(name="roll", description="Roll dice")
    @app_commands.describe(dice="Number of dice (1-20, default: 1)", sides="Number of sides (2-100, default: 6)")
    async def roll(
        interaction: discord.Interaction,
        dice: app_commands.Range[int, 1, 20] = 1,
        sides: app_commands.Range[int, 2, 100] = 6,
    ):
        dice = max(1, min(int(dice or 1), 20))
        sides = max(2, min(int(sides or 6), 100))
        results = [random.randint(1, sides) for _ in range(dice)]
        await interaction.response.send_message(format_roll(dice, sides, results))

    @bot.tree.command(name="members", description="List all server members")
    @app_commands.guild_only()
    async def members(interaction: discord.Interaction):
        if interaction.guild is None:
            await interaction.response.send_message(GUILD_ONLY_REPLY, ephemeral=True)
            return
        roster = deps.roster_snapshot(interaction.guild, deps.alias_table)
        await interaction.response.send_message(format_member_list(roster, deps.max_message_len))

    @bot.tree.command(name="dm", description="Send a direct message to a user")
    @app_commands.describe(user="The user to send a DM to", message="The message to send")
    async def dm(interaction: discord.Interaction, user: discord.User, message: str):
        bot_id = bot.user.id if bot.user else None
        if user.id == interaction.user.id or (bot_id is not None and user.id == bot_id):
            await interaction.response.send_message("You can't DM yourself through me! 😄")
            return

        await interaction.response.defer(ephemeral=True)
        sender = getattr(interaction.user, "display_name", None) or interaction.user.name
        framed = f"📩 **Message from {sender}:**\n{message}\n\n*Sent via {name}*"
        target = identity_from_member(user, deps.alias_table)
        ok = await deps.send_direct_message(target, framed)
        deps.state.action_log.record(
            target.display_name,
            message,
            success=ok,
            error_detail=None if ok else "DMs disabled or send rejected",
        )
        print(f"[Commands] /dm from={interaction.user.id} to={user.id} ok={ok}")
        if ok:
            await interaction.edit_original_response(content=f"✅ Successfully sent your message to {target.display_name}!")
        else:
            await interaction.edit_original_response(content=f"❌ Failed to send message to {target.display_name}.")

    @bot.tree.command(name="setchannel", description=f"Set current channel as {name}'s dedicated channel")
    @app_commands.describe(enable=f"Enable/disable this channel as {name} channel")
    @app_commands.guild_only()
    async def setchannel(interaction: discord.Interaction, enable: bool):
        if interaction.guild is None:
            await interaction.response.send_message(GUILD_ONLY_REPLY, ephemeral=True)
            return
        deps.state.set_designated(int(interaction.guild.id), int(interaction.channel_id), bool(enable))
        print(f"[Commands] /setchannel guild={interaction.guild.id} channel={interaction.channel_id} enable={enable}")
        if enable:
            await interaction.response.send_message(
                f"✅ **{name} Channel Set!**\nThis channel is now my dedicated channel."
            )
        else:
            await interaction.response.send_message(f"❌ **{name} Channel Disabled!**")
