"""Open/closed lifecycle of one modal dialog.

Opening acquires three scoped resources: a background scroll lock, captured
focus (restored on close) and an Escape key listener. They are held in an
`ExitStack`, so every path out of the open state releases all of them:
explicit close, Escape, backdrop click, section navigation and teardown.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from enum import Enum
from types import TracebackType

from .page import Element, KeyEvent, Page

logger = logging.getLogger(__name__)

DIALOG_ID = "learning-modal"
BACKDROP_ID = "learning-modal-backdrop"
SCROLL_LOCK = "hidden"
CANCEL_KEY = "Escape"


class ModalState(Enum):
    CLOSED = "closed"
    OPEN = "open"


class ModalController:
    """State machine for one dialog bound to a page."""

    def __init__(self, page: Page | None, *, dialog_id: str = DIALOG_ID, backdrop_id: str = BACKDROP_ID) -> None:
        self._page = page
        self._dialog_id = dialog_id
        self._backdrop_id = backdrop_id
        self._state = ModalState.CLOSED
        self._resources: ExitStack | None = None
        self._last_focused: Element | None = None

    @property
    def state(self) -> ModalState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ModalState.OPEN

    def open(self) -> None:
        """Transition closed -> open, acquiring focus capture, scroll lock and the Escape listener."""
        if self.is_open:
            return
        page = self._page
        if page is None:
            logger.debug("No page available; modal open is a no-op")
            return

        with ExitStack() as stack:
            self._last_focused = page.active_element
            stack.callback(self._restore_focus, page)

            previous_overflow = page.body_overflow
            page.body_overflow = SCROLL_LOCK
            stack.callback(setattr, page, "body_overflow", previous_overflow)

            page.focus(page.get_element_by_id(self._dialog_id))

            page.add_key_listener(self._on_key)
            stack.callback(page.remove_key_listener, self._on_key)

            self._resources = stack.pop_all()
        self._state = ModalState.OPEN
        logger.debug("Modal %s opened", self._dialog_id)

    def close(self) -> None:
        """Transition open -> closed, releasing every resource acquired by `open`."""
        if not self.is_open:
            return
        self._state = ModalState.CLOSED
        resources, self._resources = self._resources, None
        if resources is not None:
            resources.close()
        logger.debug("Modal %s closed", self._dialog_id)

    def click(self, target: Element | None) -> None:
        """Handle a click; only a click landing on the backdrop itself closes."""
        if not self.is_open or self._page is None or target is None:
            return
        if target is self._page.get_element_by_id(self._backdrop_id):
            self.close()

    def navigate_and_close(self, target_id: str) -> None:
        """Close without restoring focus, then bring the named section into view.

        The scroll waits for the next animation frame when scheduling exists.
        A missing section falls back to updating the location hash.
        """
        page = self._page
        if page is None:
            self.close()
            return
        target = page.get_element_by_id(target_id)
        self._last_focused = None
        self.close()
        if target is None:
            page.location_hash = target_id
            return
        schedule = page.request_animation_frame
        if schedule is not None:
            schedule(lambda: page.scroll_into_view(target, behavior="smooth", block="start"))
        else:
            page.scroll_into_view(target, behavior="smooth", block="start")

    def teardown(self) -> None:
        """Release everything on abrupt teardown; same cleanup as `close`."""
        self.close()

    def __enter__(self) -> ModalController:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.teardown()

    def _on_key(self, event: KeyEvent) -> None:
        if event.key == CANCEL_KEY:
            self.close()

    def _restore_focus(self, page: Page) -> None:
        element, self._last_focused = self._last_focused, None
        if element is not None:
            page.focus(element)
