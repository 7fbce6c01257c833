"""Tracks which row of a scrollable list is selected."""

from __future__ import annotations

from typing import Optional


class Selector:
    """Selection over a list of known length, wrapping at both ends."""

    def __init__(self) -> None:
        self.length = 0
        self.selected: Optional[int] = 0

    def set_length(self, length: int) -> None:
        """Update the list length; shrinking resets the selection to the top."""
        if length < self.length:
            self.selected = 0
        self.length = length

    def _last(self) -> int:
        if self.length == 0:
            raise IndexError("no items to select")
        return self.length - 1

    def top(self) -> None:
        self.selected = 0

    def bottom(self) -> None:
        self.selected = self._last()

    def next(self) -> None:
        """Move down one row, wrapping to the top after the last row."""
        if self.selected is None:
            self.selected = 0
            return
        self.selected = 0 if self.selected >= self._last() else self.selected + 1

    def previous(self) -> None:
        """Move up one row, wrapping to the bottom before the first row."""
        if self.selected is None:
            self.selected = 0
            return
        self.selected = self._last() if self.selected == 0 else self.selected - 1