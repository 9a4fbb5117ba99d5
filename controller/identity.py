from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from config.defaults import DEFAULT_MEMBER_ALIASES


@dataclass(frozen=True)
class Identity:
    handle: str
    display_name: str
    nickname: str | None = None
    aliases: tuple[str, ...] = ()
    user_id: int | None = None
    # Gateway object (discord.Member/User) used for sending; never compared.
    ref: Any = field(default=None, compare=False, repr=False)

    def names(self) -> list[str]:
        return [n for n in (self.handle, self.display_name, self.nickname) if n]


def _as_name_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        text = str(item or "").strip()
        if text:
            out.append(text)
    return out


def normalize_alias_table(raw: dict | None) -> dict[str, tuple[str, ...]]:
    table: dict[str, tuple[str, ...]] = {}
    for handle, names in (raw or {}).items():
        key = str(handle or "").strip()
        clean = _as_name_list(names)
        if key and clean:
            table[key] = tuple(clean)
    return table


def default_alias_table() -> dict[str, tuple[str, ...]]:
    return normalize_alias_table(DEFAULT_MEMBER_ALIASES)


def load_alias_table(path: str | Path | None) -> tuple[dict[str, tuple[str, ...]], str | None]:
    """
    Returns (alias_table, warning_message). warning_message is None on clean load.

    The file is either a bare mapping of handle -> names, or a mapping with an
    `aliases:` key holding that mapping.
    """
    defaults = default_alias_table()
    if not path:
        return (defaults, "Alias table path missing; using built-in aliases.")

    p = Path(path)
    if not p.exists():
        return (defaults, f"Alias table not found at {p}; using built-in aliases.")

    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except Exception as exc:
        return (defaults, f"Failed to read alias table from {p}: {exc}; using built-in aliases.")

    if isinstance(payload, dict) and isinstance(payload.get("aliases"), dict):
        payload = payload["aliases"]
    if not isinstance(payload, dict):
        return (defaults, f"Invalid alias table format in {p}; using built-in aliases.")

    table = normalize_alias_table(payload)
    if not table:
        return (defaults, f"Alias table at {p} is empty; using built-in aliases.")
    return (table, None)


def find_member(
    roster: Iterable[Identity] | None,
    raw_name: str,
    alias_table: dict[str, tuple[str, ...]] | None = None,
) -> Identity | None:
    """
    Resolve a free-text name to a roster member, or None.

    First match wins, case-insensitive:
      1. exact handle / display name / nickname
      2. exact alias, only for the member whose handle owns that alias
      3. substring either way against handle / display name / nickname
    """
    wanted = (raw_name or "").strip().lower()
    members = list(roster or [])
    if not wanted or not members:
        return None

    for member in members:
        if any(n.lower() == wanted for n in member.names()):
            return member

    table = alias_table or {}
    for member in members:
        owned = set(member.aliases) | set(table.get(member.handle, ()))
        if any(a.lower() == wanted for a in owned):
            return member

    for member in members:
        for name in member.names():
            low = name.lower()
            if wanted in low or low in wanted:
                return member

    return None
