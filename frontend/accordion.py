# frontend/accordion.py

from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Set


class AccordionMode(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class AccordionController:
    """
    Which accordion panels are expanded.

    The parent view owns one controller and hands it to every header/content
    pair; headers call `toggle`, contents ask `is_open`.

    SINGLE: at most one panel open. Opening a panel closes the previous one
            in the same call; toggling the open panel closes it.
    MULTI:  each panel toggles independently.
    """

    def __init__(self, initial_open: Optional[str] = None, mode: AccordionMode = AccordionMode.SINGLE):
        self.mode = AccordionMode(mode)
        self._open: Set[str] = {initial_open} if initial_open else set()
        self._listeners: List[Callable[["AccordionController"], None]] = []

    @property
    def open_items(self) -> FrozenSet[str]:
        return frozenset(self._open)

    def is_open(self, item_id: str) -> bool:
        return item_id in self._open

    def toggle(self, item_id: str) -> None:
        if self.mode == AccordionMode.MULTI:
            if item_id in self._open:
                self._open.discard(item_id)
            else:
                self._open.add(item_id)
        elif self._open == {item_id}:
            self._open = set()
        else:
            self._open = {item_id}
        self._notify()

    def subscribe(self, listener: Callable[["AccordionController"], None]) -> Callable[[], None]:
        """Call `listener` after every toggle. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
