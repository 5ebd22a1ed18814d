from __future__ import annotations

from typing import Any, Optional

from playwright.sync_api import Error as PWError

from .config import HarvestSettings
from .logging_utils import _harvest_event
from .selectors import REVIEW_SELECTORS, ReviewSelectors
from .utils import log_line, wait_seconds


def _activate(handle: Any, page: Any, settings: HarvestSettings) -> bool:
    try:
        handle.scroll_into_view_if_needed(timeout=settings.click_timeout_ms)
        wait_seconds(page, settings.expand_scroll_pause)
        handle.click(timeout=settings.click_timeout_ms)
        wait_seconds(page, settings.expand_click_pause)
    except PWError:
        return False
    return True


def expand_truncated_text(
    session: Any,
    settings: Optional[HarvestSettings] = None,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
) -> int:
    """Click every "More" link until a pass finds nothing left to click.

    The DOM is re-queried after each pass because expanding one review can
    reveal further links. Stops at ``expand_cap`` activations in total.
    Returns the number of links activated.
    """

    settings = settings or HarvestSettings()
    page = session.page
    query = selectors.join(selectors.read_more)
    cap = max(0, settings.expand_cap)

    total = 0
    passes = 0
    while total < cap:
        try:
            handles = page.query_selector_all(query)
        except PWError as exc:
            log_line(f"[HARVEST][WARN][EXPAND] Query failed: {exc}")
            break
        if not handles:
            break

        passes += 1
        activated = 0
        for handle in handles:
            if total >= cap:
                break
            if _activate(handle, page, settings):
                activated += 1
                total += 1
        if activated == 0:
            break
        wait_seconds(page, settings.expand_pass_pause)

    log_line(f'[EXPAND] Expanded {total} "More" buttons')
    _harvest_event("expand", step="complete", expanded=total, passes=passes, capped=total >= cap > 0)
    return total


__all__ = ["expand_truncated_text"]
