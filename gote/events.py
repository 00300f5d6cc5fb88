from typing import Callable, List

Listener = Callable[[], None]


class Event:
    """Payload-free synchronous notification. Listeners run in subscription order."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it again."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self) -> None:
        # copy: a listener may unsubscribe itself
        for listener in list(self._listeners):
            listener()

    def __len__(self) -> int:
        return len(self._listeners)
