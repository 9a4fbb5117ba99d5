from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from config.defaults import DEFAULT_ACTION_DIGEST_SIZE
from controller.action_log import ActionLog
from controller.history_store import HistoryStore, Turn
from controller.identity import Identity


def describe_member(member: Identity, alias_table: dict[str, tuple[str, ...]] | None = None) -> str:
    name = member.display_name or member.handle
    if member.handle and member.handle.lower() != name.lower():
        name += f" ({member.handle})"
    known = list(member.aliases) or list((alias_table or {}).get(member.handle, ()))
    if known:
        name += f" also known as: {', '.join(known)}"
    return name


def format_roster(roster: Iterable[Identity], alias_table: dict[str, tuple[str, ...]] | None = None) -> str:
    entries = [describe_member(m, alias_table) for m in roster]
    if not entries:
        return ""
    return "Server Members: " + ", ".join(entries)


def build_context(
    history: HistoryStore,
    action_log: ActionLog,
    key: str,
    roster: list[Identity] | None,
    *,
    is_private: bool = False,
    alias_table: dict[str, tuple[str, ...]] | None = None,
    digest_size: int = DEFAULT_ACTION_DIGEST_SIZE,
) -> list[Turn]:
    """
    Turns to submit for `key`: stored history, with the roster and recent DM
    digest appended to a copy of the system turn when a roster is given.
    """
    history.ensure(key, is_private)
    base = history.read(key)
    if roster is None or not base or base[0].role != "system":
        return base

    extras = [
        block
        for block in (format_roster(roster, alias_table), action_log.digest(digest_size))
        if block
    ]
    if not extras:
        return base

    system_turn = replace(base[0], content=base[0].content + "\n\n" + "\n\n".join(extras))
    return [system_turn, *base[1:]]


def to_chat_messages(turns: Iterable[Turn]) -> list[dict]:
    return [t.to_message() for t in turns]
