from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class RuntimeDeps:
    # core
    orchestrator: Any
    alias_table: dict[str, tuple[str, ...]]

    # gateway adapters
    roster_snapshot: Callable
    send_direct_message: Callable

    # message handling
    reaction_keywords: tuple[tuple[str, str], ...]
    passive_history: bool


@dataclass(frozen=True)
class RuntimeBootDeps:
    command_guild_id: int | None
    health_enabled: bool
    health_server_func: Callable
    keepalive_enabled: bool
    keepalive_loop_func: Callable
