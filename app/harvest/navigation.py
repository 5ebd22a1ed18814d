"""Page loading and page-state classification."""

from __future__ import annotations

import random
import re
from enum import Enum
from typing import Any, Optional

from playwright.sync_api import Error as PWError
from playwright.sync_api import TimeoutError as PWTimeout

from .config import HarvestSettings
from .errors import ErrorCode, NavigationTimeout
from .logging_utils import _harvest_event
from .selectors import REVIEW_SELECTORS, ReviewSelectors
from .utils import human_delay, log_line, wait_seconds

CHALLENGE_TITLE_PATTERN = re.compile(r"verify|unusual traffic|captcha", re.IGNORECASE)
CHALLENGE_URL_MARKERS = ("/sorry/",)
LOWEST_RATING_PATTERN = re.compile(r"lowest.?rating", re.IGNORECASE)


class PageState(str, Enum):
    READY = "ready"
    CHALLENGED = "challenged"
    TIMED_OUT = "timed_out"


def is_challenge_page(title: Optional[str], url: Optional[str] = None) -> bool:
    """Return True when the title or URL identify a bot-check page."""

    if title and CHALLENGE_TITLE_PATTERN.search(title):
        return True
    return bool(url) and any(marker in url for marker in CHALLENGE_URL_MARKERS)


def _goto(page: Any, url: str, settings: HarvestSettings) -> None:
    try:
        page.goto(
            url,
            wait_until="networkidle",
            timeout=settings.nav_timeout_seconds * 1000,
        )
    except PWTimeout as exc:
        raise NavigationTimeout(
            f"goto({url!r}) did not reach network idle within "
            f"{settings.nav_timeout_seconds}s"
        ) from exc


def load(
    session: Any,
    target_url: str,
    settings: Optional[HarvestSettings] = None,
    *,
    rng: Optional[random.Random] = None,
) -> PageState:
    """Navigate the session page to ``target_url`` and classify the result.

    A navigation timeout is not raised: the page may still have rendered
    enough to harvest, so the caller gets ``TIMED_OUT`` and decides. The
    challenge check runs in both cases because bot-check pages often never
    go idle.
    """

    settings = settings or HarvestSettings()
    page = session.page
    state = PageState.READY

    _harvest_event("nav", step="goto", url=target_url)
    try:
        _goto(page, target_url, settings)
    except NavigationTimeout as exc:
        log_line(f"[HARVEST][WARN][NAV] {exc}; continuing with partial page.")
        _harvest_event("error", phase="nav", error_code=exc.error_code, url=target_url)
        state = PageState.TIMED_OUT

    wait_seconds(page, human_delay(settings.post_load_delay, rng))

    try:
        title = page.title()
        current_url = page.url
    except PWError as exc:
        log_line(f"[HARVEST][WARN][NAV] Unable to read page identity: {exc}")
        title, current_url = "", ""

    log_line(f'[NAV] Page title: "{title}"')
    if is_challenge_page(title, current_url):
        _harvest_event(
            "error",
            phase="nav",
            error_code=ErrorCode.CREDENTIAL_EXPIRED,
            title=title,
            url=current_url,
        )
        return PageState.CHALLENGED
    return state


def wait_for_reviews(
    session: Any,
    settings: Optional[HarvestSettings] = None,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
) -> bool:
    """Wait (bounded) until any review marker is attached to the page."""

    settings = settings or HarvestSettings()
    page = session.page
    markers = selectors.join(
        selectors.reviewer_name + selectors.review_body + selectors.review_id_block
    )
    try:
        page.wait_for_selector(markers, timeout=settings.selector_timeout_seconds * 1000)
    except PWTimeout:
        log_line("[NAV] No review elements found within timeout, proceeding anyway")
        return False
    wait_seconds(page, settings.reviews_settle_seconds)
    log_line("[NAV] Review elements detected")
    return True


def apply_lowest_rating_sort(
    session: Any,
    settings: Optional[HarvestSettings] = None,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
) -> bool:
    """Best-effort click on the "Lowest rating" sort chip.

    Sorting lowest-first puts the one-star reviews at the top of the list so
    that they are loaded even when pagination stops early.
    """

    settings = settings or HarvestSettings()
    page = session.page
    try:
        candidates = page.locator(selectors.join(selectors.sort_controls)).filter(
            has_text=LOWEST_RATING_PATTERN
        )
        if not candidates.count():
            log_line("[NAV] Lowest rating sort control not found")
            return False
        candidates.first.click(timeout=settings.click_timeout_ms)
    except PWError as exc:
        log_line(f"[NAV] Sort control click failed: {exc}")
        return False

    try:
        page.wait_for_load_state(
            "networkidle", timeout=settings.selector_timeout_seconds * 1000
        )
    except PWTimeout:
        log_line("[NAV] networkidle timeout after sort; continuing.")
    wait_seconds(page, settings.sort_settle_seconds)
    _harvest_event("nav", step="sorted", order="lowest_rating")
    wait_for_reviews(session, settings, selectors)
    return True


__all__ = [
    "PageState",
    "is_challenge_page",
    "load",
    "wait_for_reviews",
    "apply_lowest_rating_sort",
]
