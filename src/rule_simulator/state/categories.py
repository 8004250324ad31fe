"""Expanded/collapsed state of the category breakdown. Purely a view toggle."""

from __future__ import annotations

from typing import Dict


class OpenedCategories:
    """Category name -> expanded flag. Absent means collapsed."""

    def __init__(self) -> None:
        self._opened: Dict[str, bool] = {}

    def toggle(self, category: str) -> bool:
        """Flip the state of a category and return the new state."""
        self._opened[category] = not self.is_open(category)
        return self._opened[category]

    def is_open(self, category: str) -> bool:
        return self._opened.get(category, False)

    def as_dict(self) -> Dict[str, bool]:
        return dict(self._opened)
