# pathcore/history.py
"""
Linear undo/redo history.

done      executed entries, oldest first
undone    redo-eligible entries, most recently undone last
saved     len(done) at the last save, or None once that state can no longer
          be reached (dropped by the size cap, or replaced by a new edit
          after undoing past it)
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .command import Command, MergeableCommand

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 200
DEFAULT_MERGE_TIMEOUT_S = 0.6


@dataclass
class HistoryEntry:
    description: str
    command: Command
    time: float


class CommandHistory:
    def __init__(self,
                 limit: int = DEFAULT_HISTORY_LIMIT,
                 merge_timeout: float = DEFAULT_MERGE_TIMEOUT_S,
                 on_change: Optional[Callable[[], None]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.limit = max(1, int(limit))
        self.merge_timeout = merge_timeout
        self.on_change = on_change
        self.clock = clock
        self.done: List[HistoryEntry] = []
        self.undone: List[HistoryEntry] = []
        self.saved: Optional[int] = 0

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _can_merge(self, description: str, command: Command, now: float, timeout: float) -> bool:
        if not self.done:
            return False
        last = self.done[-1]
        if last.description != description or now - last.time >= timeout:
            return False
        # The saved entry must stay as it was saved
        if self.saved is not None and len(self.done) <= self.saved:
            return False
        return isinstance(last.command, MergeableCommand) and last.command.merge(command)

    def execute(self, description: str, command: Command, merge_timeout: Optional[float] = None) -> None:
        """Apply the command and record it. Nothing is recorded if apply raises."""
        command.apply()
        now = self.clock()
        timeout = self.merge_timeout if merge_timeout is None else merge_timeout

        if self.saved is not None and self.saved > len(self.done):
            self.saved = None

        if self._can_merge(description, command, now, timeout):
            self.done[-1].time = now
            logger.debug("Merged: %s", description)
        else:
            self.done.append(HistoryEntry(description, command, now))
            logger.debug("Executed: %s", description)
        self.undone.clear()

        overflow = len(self.done) - self.limit
        if overflow > 0:
            del self.done[:overflow]
            if self.saved is not None:
                self.saved -= overflow
                if self.saved < 0:
                    self.saved = None
        self._changed()

    def undo(self) -> bool:
        if not self.done:
            return False
        entry = self.done[-1]
        entry.command.inverse()
        self.done.pop()
        self.undone.append(entry)
        logger.debug("Undo: %s", entry.description)
        self._changed()
        return True

    def redo(self) -> bool:
        if not self.undone:
            return False
        entry = self.undone[-1]
        entry.command.apply()
        self.undone.pop()
        self.done.append(entry)
        logger.debug("Redo: %s", entry.description)
        self._changed()
        return True

    def undo_count(self) -> int:
        return len(self.done)

    def redo_count(self) -> int:
        return len(self.undone)

    def undo_description(self) -> Optional[str]:
        return self.done[-1].description if self.done else None

    def redo_description(self) -> Optional[str]:
        return self.undone[-1].description if self.undone else None

    def is_modified(self) -> bool:
        return self.saved != len(self.done)

    def mark_saved(self) -> None:
        self.saved = len(self.done)

    def clear_history(self) -> None:
        self.done.clear()
        self.undone.clear()
        self.saved = 0
        logger.info("History cleared")
        self._changed()
