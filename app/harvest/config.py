"""Configuration constants for the review harvester."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import quote


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


def _parse_float(env_var: str, default: float) -> float:
    try:
        return float(os.getenv(env_var, str(default)))
    except ValueError:
        return default


def _parse_flag(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


TARGET_SITE_DOMAIN: str = os.getenv("HARVEST_TARGET_DOMAIN", "google.com")
REVIEWS_URL_TEMPLATE: str = os.getenv(
    "HARVEST_REVIEWS_URL_TEMPLATE",
    "https://search.google.com/local/reviews?placeid={place_id}",
)
MEDIA_HOST_MARKER: str = "googleusercontent"

COOKIES_FILE: Path = Path(os.getenv("COOKIES_FILE", "cookies.txt"))
COOKIES_ENV_VAR: str = "GOOGLE_COOKIES"
ADMIN_PASSWORD: Optional[str] = os.getenv("ADMIN_PASSWORD") or None

LOG_FILE: Optional[Path] = (
    Path(os.environ["HARVEST_LOG_FILE"]) if os.getenv("HARVEST_LOG_FILE") else None
)

HEADLESS: bool = _parse_flag("HARVEST_HEADLESS", True)
BROWSER_EXECUTABLE: Optional[str] = os.getenv("HARVEST_BROWSER_EXECUTABLE") or None

USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
LOCALE: str = "en-US"
ACCEPT_LANGUAGE: str = "en-US,en;q=0.9"
VIEWPORT: Tuple[int, int] = (1280, 900)

# Playwright timeouts (seconds)
# Navigation timeout for page.goto calls.
NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds("HARVEST_NAV_TIMEOUT_SECONDS", 60)
# Selector waits (review markers, sort chip settle).
SELECTOR_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "HARVEST_SELECTOR_TIMEOUT_SECONDS", 25
)
# Click-level timeout remains in milliseconds to match Playwright API expectations.
CLICK_TIMEOUT_MS: int = int(os.getenv("HARVEST_CLICK_TIMEOUT_MS", "2000"))

# Human-like pauses (seconds). Ranges are sampled uniformly.
POST_LOAD_DELAY_MIN: float = _parse_float("HARVEST_POST_LOAD_DELAY_MIN", 3.0)
POST_LOAD_DELAY_MAX: float = _parse_float("HARVEST_POST_LOAD_DELAY_MAX", 5.0)
SCROLL_DELAY_MIN: float = _parse_float("HARVEST_SCROLL_DELAY_MIN", 2.5)
SCROLL_DELAY_MAX: float = _parse_float("HARVEST_SCROLL_DELAY_MAX", 4.0)
REVIEWS_SETTLE_SECONDS: float = _parse_float("HARVEST_REVIEWS_SETTLE_SECONDS", 2.5)
SORT_SETTLE_SECONDS: float = _parse_float("HARVEST_SORT_SETTLE_SECONDS", 3.0)
PRE_EXTRACT_SETTLE_SECONDS: float = _parse_float("HARVEST_PRE_EXTRACT_SETTLE_SECONDS", 1.5)

# Pagination
STABILITY_ROUNDS: int = int(os.getenv("HARVEST_STABILITY_ROUNDS", "5"))
SCROLL_STEP_PX: int = int(os.getenv("HARVEST_SCROLL_STEP_PX", "3000"))

# "Read more" expansion pacing
EXPAND_CAP: int = int(os.getenv("HARVEST_EXPAND_CAP", "2000"))
EXPAND_SCROLL_PAUSE_SECONDS: float = _parse_float("HARVEST_EXPAND_SCROLL_PAUSE", 0.2)
EXPAND_CLICK_PAUSE_SECONDS: float = _parse_float("HARVEST_EXPAND_CLICK_PAUSE", 0.4)
EXPAND_PASS_PAUSE_SECONDS: float = _parse_float("HARVEST_EXPAND_PASS_PAUSE", 0.3)

TARGET_RATING: float = _parse_float("HARVEST_TARGET_RATING", 1.0)
FILTER_DESCRIPTION: str = "1-star reviews only"
SORT_DESCRIPTION: str = "newest first"

PORT: int = int(os.getenv("PORT", "8080"))


@dataclass(frozen=True)
class HarvestSettings:
    """Per-job snapshot of the tunables above.

    Resolved once when a job starts so that a long harvest never observes a
    configuration change half way through.
    """

    headless: bool = True
    browser_executable: Optional[str] = None
    user_agent: str = USER_AGENT
    locale: str = LOCALE
    accept_language: str = ACCEPT_LANGUAGE
    viewport: Tuple[int, int] = VIEWPORT
    target_domain: str = "google.com"
    reviews_url_template: str = "https://search.google.com/local/reviews?placeid={place_id}"
    nav_timeout_seconds: int = 60
    selector_timeout_seconds: int = 25
    click_timeout_ms: int = 2000
    post_load_delay: Tuple[float, float] = (3.0, 5.0)
    scroll_delay: Tuple[float, float] = (2.5, 4.0)
    reviews_settle_seconds: float = 2.5
    sort_settle_seconds: float = 3.0
    pre_extract_settle_seconds: float = 1.5
    stability_rounds: int = 5
    scroll_step_px: int = 3000
    expand_cap: int = 2000
    expand_scroll_pause: float = 0.2
    expand_click_pause: float = 0.4
    expand_pass_pause: float = 0.3
    target_rating: float = 1.0
    filter_description: str = "1-star reviews only"
    sort_description: str = "newest first"

    @classmethod
    def from_config(cls) -> "HarvestSettings":
        """Build settings from the module-level configuration values."""

        return cls(
            headless=HEADLESS,
            browser_executable=BROWSER_EXECUTABLE,
            user_agent=USER_AGENT,
            locale=LOCALE,
            accept_language=ACCEPT_LANGUAGE,
            viewport=VIEWPORT,
            target_domain=TARGET_SITE_DOMAIN,
            reviews_url_template=REVIEWS_URL_TEMPLATE,
            nav_timeout_seconds=NAV_TIMEOUT_SECONDS,
            selector_timeout_seconds=SELECTOR_TIMEOUT_SECONDS,
            click_timeout_ms=CLICK_TIMEOUT_MS,
            post_load_delay=(POST_LOAD_DELAY_MIN, POST_LOAD_DELAY_MAX),
            scroll_delay=(SCROLL_DELAY_MIN, SCROLL_DELAY_MAX),
            reviews_settle_seconds=REVIEWS_SETTLE_SECONDS,
            sort_settle_seconds=SORT_SETTLE_SECONDS,
            pre_extract_settle_seconds=PRE_EXTRACT_SETTLE_SECONDS,
            stability_rounds=STABILITY_ROUNDS,
            scroll_step_px=SCROLL_STEP_PX,
            expand_cap=EXPAND_CAP,
            expand_scroll_pause=EXPAND_SCROLL_PAUSE_SECONDS,
            expand_click_pause=EXPAND_CLICK_PAUSE_SECONDS,
            expand_pass_pause=EXPAND_PASS_PAUSE_SECONDS,
            target_rating=TARGET_RATING,
            filter_description=FILTER_DESCRIPTION,
            sort_description=SORT_DESCRIPTION,
        )

    def reviews_url(self, place_id: str) -> str:
        return self.reviews_url_template.format(place_id=quote(place_id, safe=""))
