from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone

from config.defaults import DEFAULT_ACTION_DIGEST_SIZE, DEFAULT_ACTION_LOG_CAP


@dataclass(frozen=True)
class ActionRecord:
    recipient: str
    content: str
    timestamp: datetime
    success: bool
    error_detail: str | None = None

    @property
    def outcome(self) -> str:
        return "success" if self.success else "failure"

    def describe(self) -> str:
        if self.success:
            return f'sent DM to {self.recipient}: "{self.content}"'
        return f"failed to DM {self.recipient}"


class ActionLog:
    """Append-only record of DMs the bot sent (or tried to send), capped at `cap` entries."""

    def __init__(self, cap: int = DEFAULT_ACTION_LOG_CAP):
        self.cap = max(1, int(cap))
        self._records: deque[ActionRecord] = deque(maxlen=self.cap)

    def __len__(self) -> int:
        return len(self._records)

    def record(
        self,
        recipient: str,
        content: str,
        *,
        success: bool,
        error_detail: str | None = None,
        timestamp: datetime | None = None,
    ) -> ActionRecord:
        rec = ActionRecord(
            recipient=str(recipient or "unknown"),
            content=content or "",
            timestamp=timestamp or datetime.now(timezone.utc),
            success=bool(success),
            error_detail=error_detail,
        )
        self._records.append(rec)
        return rec

    def recent(self, limit: int = DEFAULT_ACTION_DIGEST_SIZE) -> list[ActionRecord]:
        lim = max(0, int(limit))
        if lim == 0:
            return []
        return list(self._records)[-lim:]

    def digest(self, limit: int = DEFAULT_ACTION_DIGEST_SIZE) -> str:
        recent = self.recent(limit)
        if not recent:
            return ""
        return "Recent DMs: " + ", ".join(r.describe() for r in recent)
