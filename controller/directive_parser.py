from __future__ import annotations

import re
from dataclasses import dataclass

# [DM:<target>:<payload>] -- target has no colon, payload stops at the first "]".
DM_DIRECTIVE_PATTERN = re.compile(r"\[DM:([^:]+):(.+?)\]", flags=re.S)
_DM_DIRECTIVE_WITH_SPACING = re.compile(r"(?P<lead>[ \t]*)\[DM:[^:]+:.+?\](?P<trail>[ \t]*)", flags=re.S)


@dataclass(frozen=True)
class Directive:
    target: str
    payload: str


def _join_gap(match: re.Match) -> str:
    lead = match.group("lead")
    trail = match.group("trail")
    if lead and trail:
        return " "
    return lead or trail


def strip_directives(text: str) -> str:
    return _DM_DIRECTIVE_WITH_SPACING.sub(_join_gap, text or "").strip()


def extract_directive(text: str) -> tuple[Directive | None, str]:
    """
    Returns (directive, cleaned_text).

    Only the first directive is honored, but every directive is removed from
    the cleaned text. Text without a directive comes back untouched.
    """
    raw = text or ""
    m = DM_DIRECTIVE_PATTERN.search(raw)
    if not m:
        return (None, raw)

    target = m.group(1).strip()
    payload = m.group(2).strip()
    cleaned = strip_directives(raw)
    if not target or not payload:
        return (None, cleaned)
    return (Directive(target=target, payload=payload), cleaned)
