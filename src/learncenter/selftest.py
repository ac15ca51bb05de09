"""One-shot diagnostic checks over rendered HTML.

Checks are advisory: a failing or crashing check is reported, never raised.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

TRACK_KEYS = ("ai-overseas", "yt-ai", "bilibili-goods")
PRICE_PATTERN = re.compile(r"(¥|￥|价格|折扣|优惠|\$\s?\d|\bprices?\b|\bdiscounts?\b|\bpricing\b)", re.IGNORECASE)
FORM_SELECTOR = "input, select, textarea, form"
REMOVED_COPY = (
    "three sentences explained",
    "three keywords",
    "prices are not shown",
    "no sign-up form",
)


@dataclass(frozen=True)
class Check:
    name: str
    run: Callable[[BeautifulSoup], bool]


@dataclass(frozen=True)
class CheckResult:
    name: str
    passed: bool


def _page_text(soup: BeautifulSoup) -> str:
    body = soup.body if soup.body is not None else soup
    return body.get_text(" ", strip=True)


def _has(selector: str) -> Callable[[BeautifulSoup], bool]:
    return lambda soup: soup.select_one(selector) is not None


def _at_least(selector: str, count: int) -> Callable[[BeautifulSoup], bool]:
    return lambda soup: len(soup.select(selector)) >= count


def _no_price_or_form(soup: BeautifulSoup) -> bool:
    if PRICE_PATTERN.search(_page_text(soup)):
        return False
    return soup.select_one(FORM_SELECTOR) is None


def _lacks_phrase(phrase: str) -> Callable[[BeautifulSoup], bool]:
    return lambda soup: phrase.lower() not in _page_text(soup).lower()


DEFAULT_CHECKS: tuple[Check, ...] = (
    Check("hero present", _has('[data-testid="hero-title"]')),
    Check(
        "three track cards present",
        lambda soup: all(soup.select_one(f'[data-testid="track-card-{key}"]') is not None for key in TRACK_KEYS),
    ),
    Check("no prices or forms", _no_price_or_form),
    Check("at least 3 FAQ entries", _at_least('[data-testid="faq-item"]', 3)),
    Check("learning center present", _has('[data-testid="learning-center"]')),
    Check("at least 2 course cards", _at_least('[data-testid^="course-card-"]', 2)),
    Check("continue button present", _has('[data-testid="continue-btn"]')),
    *(Check(f"removed copy absent: {phrase}", _lacks_phrase(phrase)) for phrase in REMOVED_COPY),
)


class SelfTestHarness:
    """Runs an ordered list of named checks once per harness."""

    def __init__(self, checks: Sequence[Check] = DEFAULT_CHECKS) -> None:
        self.checks = tuple(checks)
        self.results: list[CheckResult] | None = None

    @property
    def ran(self) -> bool:
        return self.results is not None

    def run(self, html: str | None) -> list[CheckResult]:
        """Evaluate every check against the HTML and log the report table."""
        if html is None:
            logger.debug("Nothing rendered; self-test skipped")
            return []
        soup = BeautifulSoup(html, "html.parser")
        results = [CheckResult(check.name, self._evaluate(check, soup)) for check in self.checks]
        logger.info("Self-test report\n%s", format_report(results))
        return results

    def run_once(self, html: str | None) -> list[CheckResult] | None:
        """Run on the first rendered page only; later calls return None."""
        if self.ran or html is None:
            return None
        self.results = self.run(html)
        return self.results

    @staticmethod
    def _evaluate(check: Check, soup: BeautifulSoup) -> bool:
        try:
            return bool(check.run(soup))
        except Exception:
            logger.warning("Self-test check %r crashed", check.name, exc_info=True)
            return False


def format_report(results: Sequence[CheckResult]) -> str:
    """Format results as a two-column text table."""
    width = max([len("check"), *(len(result.name) for result in results)])
    lines = [f"{'check':<{width}}  pass", f"{'-' * width}  ----"]
    lines.extend(f"{result.name:<{width}}  {'yes' if result.passed else 'NO'}" for result in results)
    return "\n".join(lines)
