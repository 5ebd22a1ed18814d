"""Infinite-scroll pagination for the reviews list.

The page gives no end-of-list signal, so pagination is considered exhausted
once the progress signal stops changing for ``stability_rounds`` consecutive
rounds. A page that keeps growing forever keeps this loop running forever.
"""

from __future__ import annotations

import random
from typing import Any, Dict, Optional, Tuple

from playwright.sync_api import Error as PWError

from .config import HarvestSettings
from .logging_utils import _harvest_event
from .selectors import REVIEW_SELECTORS, ReviewSelectors
from .utils import human_delay, log_line, wait_seconds

# The element that really owns the scrollbar is unknown up front, so scroll
# the best candidate container and the window.
SCROLL_SCRIPT = """
(args) => {
  let target = null;
  let via = 'window';
  for (const sel of args.containers) {
    const el = document.querySelector(sel);
    if (el && el.scrollHeight > el.clientHeight + args.minOverflow) {
      target = el;
      via = sel;
      break;
    }
  }
  if (!target) {
    let best = null;
    for (const div of document.querySelectorAll('div')) {
      if (div.scrollHeight > div.clientHeight + args.fallbackOverflow &&
          div.clientHeight > args.fallbackMinHeight &&
          (!best || div.scrollHeight > best.scrollHeight)) {
        best = div;
      }
    }
    if (best) {
      target = best;
      via = 'tallest-div';
    }
  }
  if (target) {
    target.scrollBy(0, args.step);
  }
  window.scrollBy(0, args.step);
  return via;
}
"""

PROGRESS_SCRIPT = """
(markers) => {
  let height = document.body ? document.body.scrollHeight : 0;
  for (const el of document.querySelectorAll('div')) {
    if (el.scrollHeight > height && el.scrollHeight > el.clientHeight) {
      height = el.scrollHeight;
    }
  }
  return {count: document.querySelectorAll(markers).length, height: height};
}
"""

CONTAINER_MIN_OVERFLOW_PX = 100
FALLBACK_MIN_OVERFLOW_PX = 500
FALLBACK_MIN_CLIENT_HEIGHT_PX = 300

Progress = Tuple[int, int]


def scroll_once(
    page: Any,
    settings: HarvestSettings,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
) -> str:
    """Issue one scroll-forward interaction; return which element scrolled."""

    args: Dict[str, Any] = {
        "containers": list(selectors.scroll_containers),
        "step": settings.scroll_step_px,
        "minOverflow": CONTAINER_MIN_OVERFLOW_PX,
        "fallbackOverflow": FALLBACK_MIN_OVERFLOW_PX,
        "fallbackMinHeight": FALLBACK_MIN_CLIENT_HEIGHT_PX,
    }
    return str(page.evaluate(SCROLL_SCRIPT, args))


def read_progress(page: Any, selectors: ReviewSelectors = REVIEW_SELECTORS) -> Progress:
    """Read the current review count and maximum scroll height."""

    snapshot = page.evaluate(PROGRESS_SCRIPT, selectors.review_markers) or {}
    return int(snapshot.get("count") or 0), int(snapshot.get("height") or 0)


def expand_all(
    session: Any,
    settings: Optional[HarvestSettings] = None,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
    *,
    rng: Optional[random.Random] = None,
) -> None:
    """Scroll until the review list stops growing."""

    settings = settings or HarvestSettings()
    page = session.page
    stability_rounds = max(1, settings.stability_rounds)

    last: Optional[Progress] = None
    unchanged = 0
    rounds = 0
    while True:
        rounds += 1
        try:
            via = scroll_once(page, settings, selectors)
            wait_seconds(page, human_delay(settings.scroll_delay, rng))
            progress = read_progress(page, selectors)
        except PWError as exc:
            log_line(f"[HARVEST][WARN][SCROLL] Stopping pagination after error: {exc}")
            break

        log_line(
            f"[SCROLL] Round {rounds} via {via}: reviews visible so far: "
            f"{progress[0]} (height {progress[1]})"
        )
        if progress == last:
            unchanged += 1
            if unchanged >= stability_rounds:
                break
        else:
            unchanged = 0
        last = progress

    _harvest_event(
        "scroll",
        step="complete",
        rounds=rounds,
        reviews_visible=last[0] if last else 0,
    )


__all__ = ["expand_all", "scroll_once", "read_progress", "SCROLL_SCRIPT", "PROGRESS_SCRIPT"]
