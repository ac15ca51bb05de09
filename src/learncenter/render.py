"""HTML rendering of the page and learning center."""

from __future__ import annotations

import logging

from jinja2 import Environment, PackageLoader, select_autoescape

from .modal import BACKDROP_ID, DIALOG_ID
from .page import Page
from .selftest import SelfTestHarness
from .service import LearnService

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "home.html"
SECTION_IDS = ("hero", "tracks", "proof", "learn-section", "faq")


def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("learncenter", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


class PageRenderer:
    """Renders the page from service state and runs the self-test after the first render."""

    def __init__(self, service: LearnService, harness: SelfTestHarness | None = None) -> None:
        self.service = service
        self.harness = harness
        self._env = _environment()

    def render(self, *, modal_open: bool = False) -> str:
        template = self._env.get_template(TEMPLATE_NAME)
        html = template.render(
            catalog=self.service.catalog,
            user=self.service.user,
            cards=self.service.course_cards(),
            recent=self.service.recent_lessons(),
            modal_open=modal_open,
        )
        if self.harness is not None:
            self.harness.run_once(html)
        return html


def build_page(service: LearnService) -> Page:
    """Build the document model matching the rendered page's addressable elements."""
    page = Page()
    for section_id in SECTION_IDS:
        page.add_element(section_id)
    for track in service.catalog.tracks:
        page.add_element(track.key)
    page.add_element("open-guide")
    backdrop = page.add_element(BACKDROP_ID, focusable=False)
    page.add_element(DIALOG_ID, parent=backdrop)
    return page
