from __future__ import annotations

from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.commands_chat import register as register_chat
from misc.discord_gates import deferred_reply_editor
from misc.events_runtime import register_runtime_events
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def wire_bot_runtime(
    bot,
    *,
    orchestrator,
    state,
    alias_table: dict[str, tuple[str, ...]],
    roster_snapshot,
    send_direct_message,
    reaction_keywords: tuple[tuple[str, str], ...],
    passive_history: bool,
    bot_display_name: str,
    max_message_len: int,
    command_guild_id: int | None,
    health_enabled: bool,
    health_server_func,
    keepalive_enabled: bool,
    keepalive_loop_func,
) -> None:
    def in_designated_channel(ctx) -> bool:
        try:
            if ctx.guild is None:
                return False
            return state.is_designated(int(ctx.guild.id), int(ctx.channel.id))
        except Exception:
            return False

    register_chat(
        bot,
        deps=CommandDeps(
            orchestrator=orchestrator,
            state=state,
            alias_table=alias_table,
            bot_display_name=bot_display_name,
            max_message_len=max_message_len,
            roster_snapshot=roster_snapshot,
            send_direct_message=send_direct_message,
            deferred_reply_editor=deferred_reply_editor,
        ),
        gates=CommandGates(
            in_designated_channel=in_designated_channel,
        ),
    )

    register_runtime_events(
        bot,
        deps=RuntimeDeps(
            orchestrator=orchestrator,
            alias_table=alias_table,
            roster_snapshot=roster_snapshot,
            send_direct_message=send_direct_message,
            reaction_keywords=reaction_keywords,
            passive_history=passive_history,
        ),
        boot=RuntimeBootDeps(
            command_guild_id=command_guild_id,
            health_enabled=health_enabled,
            health_server_func=health_server_func,
            keepalive_enabled=keepalive_enabled,
            keepalive_loop_func=keepalive_loop_func,
        ),
    )
