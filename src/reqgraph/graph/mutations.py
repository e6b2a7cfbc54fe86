"""Mutation types for in-process graph transactions.

Every write performed through a transaction is recorded as a
``MutationEntry`` whose ``before_state`` holds enough information to
reverse it. A transaction that fails replays its log backwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class MutationEntry:
    """Single mutation operation record.

    Attributes:
        operation: Operation type (e.g., "create_node", "add_edge").
        target_id: Primary target of the mutation.
        before_state: State before mutation (for undo).
        after_state: State after mutation.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]

    def __str__(self) -> str:
        return f"{self.operation}({self.target_id})"


class MutationLog:
    """Append-only mutation history for one transaction.

    Example:
        >>> log = MutationLog()
        >>> log.append(
        ...     MutationEntry(
        ...         operation="set_properties",
        ...         target_id="acme:apollo:srd",
        ...         before_state={"shortCode": "SRD"},
        ...         after_state={"shortCode": "SYS"},
        ...     )
        ... )
        >>> len(log), str(log.pop())
        (1, 'set_properties(acme:apollo:srd)')
    """

    def __init__(self) -> None:
        """Initialize an empty mutation log."""
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        """Append a mutation entry to the log."""
        self._entries.append(entry)

    def __len__(self) -> int:
        """Return the number of entries in the log."""
        return len(self._entries)

    def pop(self) -> MutationEntry | None:
        """Remove and return the most recent entry.

        Used while rolling back. Does not log the removal.
        """
        return self._entries.pop() if self._entries else None

    def clear(self) -> None:
        """Clear all entries from the log."""
        self._entries.clear()


__all__ = ["MutationEntry", "MutationLog"]
