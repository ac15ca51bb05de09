"""In-process document model: focus, body scroll style, key listeners and viewport scrolling."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

KeyListener = Callable[["KeyEvent"], None]
FrameCallback = Callable[[], None]


@dataclass(eq=False)
class Element:
    """Addressable node; identity is object identity."""

    id: str
    parent: Element | None = None
    focusable: bool = True

    def contains(self, other: Element | None) -> bool:
        """Return whether `other` is this element or one of its descendants."""
        node = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ScrollRecord:
    element_id: str
    behavior: str
    block: str


@dataclass(eq=False)
class Page:
    """Document and viewport capabilities for one rendered page.

    `request_animation_frame` is None when frame scheduling is unavailable;
    queued frames run on `run_animation_frames`.
    """

    body: Element = field(default_factory=lambda: Element("body"))
    body_overflow: str = ""
    location_hash: str = ""
    animation_frames: bool = True

    def __post_init__(self) -> None:
        self.active_element: Element | None = self.body
        self._elements: dict[str, Element] = {self.body.id: self.body}
        self._key_listeners: list[KeyListener] = []
        self._frames: list[FrameCallback] = []
        self.scroll_log: list[ScrollRecord] = []
        self.request_animation_frame: Callable[[FrameCallback], None] | None = (
            self._queue_frame if self.animation_frames else None
        )

    def add_element(self, element_id: str, parent: Element | None = None, *, focusable: bool = True) -> Element:
        if element_id in self._elements:
            raise ValueError(f"Duplicate element id: {element_id}")
        element = Element(element_id, parent=parent if parent is not None else self.body, focusable=focusable)
        self._elements[element_id] = element
        return element

    def get_element_by_id(self, element_id: str) -> Element | None:
        return self._elements.get(element_id)

    def focus(self, element: Element | None) -> None:
        """Move focus to the element; unfocusable or detached targets are ignored."""
        if element is None or not element.focusable:
            return
        if self._elements.get(element.id) is not element:
            return
        self.active_element = element

    def remove_element(self, element_id: str) -> None:
        element = self._elements.pop(element_id, None)
        if element is not None and element.contains(self.active_element):
            self.active_element = self.body

    def add_key_listener(self, listener: KeyListener) -> None:
        self._key_listeners.append(listener)

    def remove_key_listener(self, listener: KeyListener) -> None:
        if listener in self._key_listeners:
            self._key_listeners.remove(listener)

    @property
    def key_listener_count(self) -> int:
        return len(self._key_listeners)

    def dispatch_key(self, key: str) -> None:
        event = KeyEvent(key)
        for listener in list(self._key_listeners):
            listener(event)

    def scroll_into_view(self, element: Element, *, behavior: str = "smooth", block: str = "start") -> None:
        self.scroll_log.append(ScrollRecord(element.id, behavior, block))

    def _queue_frame(self, callback: FrameCallback) -> None:
        self._frames.append(callback)

    def run_animation_frames(self) -> int:
        """Run every queued frame callback; returns how many ran."""
        frames, self._frames = self._frames, []
        for callback in frames:
            callback()
        return len(frames)
