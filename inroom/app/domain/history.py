"""Append-only audit trail owned by an order."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Iterator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    """A single state transition recorded against an order."""

    when: datetime
    action: str


class History:
    """Ordered log of :class:`HistoryEntry` values.

    Entries can only be appended. The log exposes read-only iteration and
    indexing; there is no way to remove, replace or reorder an entry once it
    has been recorded.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[HistoryEntry] = ()) -> None:
        self._entries: tuple[HistoryEntry, ...] = tuple(entries)

    def append(self, action: str, when: datetime | None = None) -> HistoryEntry:
        """Record ``action`` and return the new entry."""

        if not action or not action.strip():
            raise ValueError("history action must not be blank")
        entry = HistoryEntry(when=when or utcnow(), action=action)
        self._entries = self._entries + (entry,)
        return entry

    def entries(self) -> tuple[HistoryEntry, ...]:
        return self._entries

    def since(self, count: int) -> tuple[HistoryEntry, ...]:
        """Return entries appended after the first ``count``."""

        return self._entries[count:]

    def copy(self) -> "History":
        return History(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"History({list(self._entries)!r})"
