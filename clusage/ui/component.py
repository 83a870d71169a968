"""
Component tree for the terminal UI.

A component renders itself to a list of lines and handles key events. It owns
its children; a child keeps only a weak reference to its parent, which is used
to propagate dirty marking up to the root. The root forwards dirty marks to an
optional listener (the application schedules a repaint there).
"""

#region Imports
import weakref
from abc import ABC, abstractmethod
from typing import Callable, Generic, Optional, Sequence, TypeVar

from clusage.ui.keyboard import KeyEvent, is_navigation_key
from clusage.ui.renderer import colorize
#endregion


#region Constants
DEFAULT_VISIBLE_COUNT = 10

T = TypeVar("T")
#endregion


#region Component


class Component(ABC):
    """Base class for everything the application can display."""

    def __init__(self):
        self.focused = False
        self.visible = True
        self.dirty = True
        self.children: list["Component"] = []
        self._parent_ref: Optional[weakref.ref] = None
        self.dirty_listener: Optional[Callable[["Component"], None]] = None

    @abstractmethod
    def render(self) -> list[str]:
        """Return the lines to display, top to bottom."""

    def handle_key(self, event: KeyEvent) -> bool:
        """
        Handle a key event.

        Returns:
            True if the event was consumed
        """
        return False

    # Focus / visibility

    def set_focus(self, focused: bool) -> None:
        self.focused = focused
        self.mark_dirty()

    def is_focused(self) -> bool:
        return self.focused

    def set_visible(self, visible: bool) -> None:
        self.visible = visible
        self.mark_dirty()

    def is_visible(self) -> bool:
        return self.visible

    # Dirty tracking

    def mark_dirty(self) -> None:
        """Flag this component and every ancestor as needing a repaint."""
        self.dirty = True
        parent = self.parent
        if parent is not None:
            parent.mark_dirty()
        elif self.dirty_listener is not None:
            self.dirty_listener(self)

    def is_dirty(self) -> bool:
        return self.dirty

    def mark_clean(self) -> None:
        self.dirty = False

    # Ownership

    @property
    def parent(self) -> Optional["Component"]:
        return self._parent_ref() if self._parent_ref is not None else None

    def set_parent(self, parent: Optional["Component"]) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    def add_child(self, child: "Component") -> None:
        child.set_parent(self)
        self.children.append(child)
        self.mark_dirty()

    def remove_child(self, child: "Component") -> None:
        if child in self.children:
            child.set_parent(None)
            self.children.remove(child)
            self.mark_dirty()

    # Lifecycle

    def init(self) -> None:
        """Called when the component becomes part of the application stack."""

    def destroy(self) -> None:
        """Release children. Subclasses extend this to drop their own state."""
        for child in self.children:
            child.destroy()
            child.set_parent(None)
        self.children = []
        self.dirty_listener = None
#endregion


#region Selectable List


class SelectableList(Component, Generic[T]):
    """
    Vertical list with a single selection and a scrolling window.

    The scroll offset always keeps the selected item inside the visible
    window of ``visible_count`` rows.
    """

    def __init__(self, items: Optional[Sequence[T]] = None, visible_count: int = DEFAULT_VISIBLE_COUNT):
        super().__init__()
        self.items: list[T] = list(items or [])
        self.selected_index = 0
        self.scroll_offset = 0
        self.visible_count = visible_count

    def set_items(self, items: Sequence[T]) -> None:
        self.items = list(items)
        self.selected_index = min(self.selected_index, max(0, len(self.items) - 1))
        self.adjust_scroll()
        self.mark_dirty()

    def get_selected_item(self) -> Optional[T]:
        if 0 <= self.selected_index < len(self.items):
            return self.items[self.selected_index]
        return None

    def select_next(self) -> bool:
        if self.selected_index < len(self.items) - 1:
            self.selected_index += 1
            self.adjust_scroll()
            self.mark_dirty()
            return True
        return False

    def select_prev(self) -> bool:
        if self.selected_index > 0:
            self.selected_index -= 1
            self.adjust_scroll()
            self.mark_dirty()
            return True
        return False

    def select_first(self) -> None:
        self.selected_index = 0
        self.scroll_offset = 0
        self.mark_dirty()

    def select_last(self) -> None:
        self.selected_index = max(0, len(self.items) - 1)
        self.adjust_scroll()
        self.mark_dirty()

    def adjust_scroll(self) -> None:
        """Move the window so the selected item is visible."""
        if self.selected_index < self.scroll_offset:
            self.scroll_offset = self.selected_index
        elif self.selected_index >= self.scroll_offset + self.visible_count:
            self.scroll_offset = self.selected_index - self.visible_count + 1

    def get_visible_items(self) -> list[T]:
        return self.items[self.scroll_offset:self.scroll_offset + self.visible_count]

    def render_item(self, item: T, selected: bool) -> str:
        text = f"{'▶' if selected else ' '} {item}"
        return colorize(text, "cyan", "bold") if selected else text

    def render(self) -> list[str]:
        return [
            self.render_item(item, self.scroll_offset + i == self.selected_index)
            for i, item in enumerate(self.get_visible_items())
        ]

    def handle_key(self, event: KeyEvent) -> bool:
        if event.name == "up":
            return self.select_prev()
        if event.name == "down":
            return self.select_next()
        if event.name == "home":
            self.select_first()
            return True
        if event.name == "end":
            self.select_last()
            return True
        return False
#endregion


#region Grid


class Grid(Component, Generic[T]):
    """
    Two-dimensional selection over rows of possibly different lengths.

    Movement returns False at the grid edges instead of wrapping.
    """

    def __init__(self, items: Optional[Sequence[Sequence[T]]] = None):
        super().__init__()
        self.items: list[list[T]] = [list(row) for row in items or []]
        self.selected_row = 0
        self.selected_col = 0

    def set_items(self, items: Sequence[Sequence[T]]) -> None:
        self.items = [list(row) for row in items]
        self.clamp_selection()
        self.mark_dirty()

    def get_selected_item(self) -> Optional[T]:
        if 0 <= self.selected_row < len(self.items):
            row = self.items[self.selected_row]
            if 0 <= self.selected_col < len(row):
                return row[self.selected_col]
        return None

    def get_selected_position(self) -> tuple[int, int]:
        return self.selected_row, self.selected_col

    def clamp_selection(self) -> None:
        """Keep the selection inside the grid, using the selected row's length."""
        max_row = max(0, len(self.items) - 1)
        self.selected_row = max(0, min(self.selected_row, max_row))
        row_length = len(self.items[self.selected_row]) if self.items else 1
        self.selected_col = max(0, min(self.selected_col, max(0, row_length - 1)))

    def move_up(self) -> bool:
        if self.selected_row > 0:
            self.selected_row -= 1
            self.clamp_selection()
            self.mark_dirty()
            return True
        return False

    def move_down(self) -> bool:
        if self.selected_row < len(self.items) - 1:
            self.selected_row += 1
            self.clamp_selection()
            self.mark_dirty()
            return True
        return False

    def move_left(self) -> bool:
        if self.selected_col > 0:
            self.selected_col -= 1
            self.mark_dirty()
            return True
        return False

    def move_right(self) -> bool:
        row_length = len(self.items[self.selected_row]) if self.items else 0
        if self.selected_col < row_length - 1:
            self.selected_col += 1
            self.mark_dirty()
            return True
        return False

    def handle_key(self, event: KeyEvent) -> bool:
        if not is_navigation_key(event):
            return False
        moves = {
            "up": self.move_up,
            "down": self.move_down,
            "left": self.move_left,
            "right": self.move_right,
        }
        move = moves.get(event.name)
        return move() if move is not None else False
#endregion

