from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Callable

from config.defaults import DISCORD_MAX_MESSAGE_LEN


def _default_false(*args, **kwargs) -> bool:
    return False


async def _send_nothing(*args, **kwargs) -> bool:
    return False


@dataclass(frozen=True)
class CommandDeps:
    # Core/shared
    orchestrator: Any = None
    state: Any = None
    alias_table: dict[str, tuple[str, ...]] = field(default_factory=dict)
    bot_display_name: str = "Ngubot"
    max_message_len: int = DISCORD_MAX_MESSAGE_LEN

    # Gateway adapters
    roster_snapshot: Callable = lambda guild, alias_table=None: []
    send_direct_message: Callable = _send_nothing
    deferred_reply_editor: Callable | None = None


@dataclass(frozen=True)
class CommandGates:
    in_designated_channel: Callable[[Any], bool] = _default_false
