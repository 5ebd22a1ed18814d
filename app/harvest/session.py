"""Browser session setup for a single harvest.

Each job gets its own Playwright driver, Chromium instance, context and page.
Nothing is shared between jobs, and :meth:`Session.close` tears all of it down
whether the harvest succeeded or not.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from playwright.sync_api import Error as PWError
from playwright.sync_api import sync_playwright

from .config import HarvestSettings
from .credentials import Credential
from .errors import SessionInitError
from .logging_utils import _harvest_event
from .utils import log_line

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
    "--lang=en-US,en",
]

# Runs before any page script on every navigation.
FINGERPRINT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
window.chrome = window.chrome || {runtime: {}};
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});
"""


@dataclass
class Session:
    playwright: Any
    browser: Any
    context: Any
    page: Any
    cookies_injected: int = 0
    closed: bool = False

    def close(self) -> None:
        """Close the context (and with it the page), the browser and the driver.

        Each step is best-effort so a failure in one never skips the rest.
        """

        if self.closed:
            return
        self.closed = True
        for label, closer in (
            ("context", self.context.close),
            ("browser", self.browser.close),
            ("playwright", self.playwright.stop),
        ):
            try:
                closer()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[SESSION][WARN] Failed to close {label}: {exc}")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


def inject_credentials(context: Any, credentials: Iterable[Credential]) -> int:
    """Add each credential to ``context``; rejected cookies are skipped."""

    injected = 0
    for credential in credentials:
        try:
            context.add_cookies([credential.to_playwright()])
        except PWError as exc:
            _harvest_event(
                "session",
                step="cookie_rejected",
                name=credential.name,
                domain=credential.domain,
                error=str(exc).splitlines()[0] if str(exc) else "",
            )
            continue
        injected += 1
    return injected


class SessionBootstrapper:
    def __init__(
        self,
        settings: Optional[HarvestSettings] = None,
        *,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self.settings = settings or HarvestSettings.from_config()
        self._playwright_factory = playwright_factory

    def _launch(self, pw: Any) -> Any:
        options: dict[str, Any] = {
            "headless": self.settings.headless,
            "args": list(LAUNCH_ARGS),
        }
        if self.settings.browser_executable:
            options["executable_path"] = self.settings.browser_executable
        return pw.chromium.launch(**options)

    def open(self, credentials: Iterable[Credential]) -> Session:
        """Launch an isolated browser context with ``credentials`` loaded."""

        snapshot = tuple(credentials)
        try:
            pw = self._playwright_factory().start()
        except Exception as exc:  # noqa: BLE001
            raise SessionInitError(f"Failed to start Playwright: {exc}") from exc

        browser = None
        try:
            browser = self._launch(pw)
            width, height = self.settings.viewport
            context = browser.new_context(
                user_agent=self.settings.user_agent,
                locale=self.settings.locale,
                viewport={"width": width, "height": height},
                extra_http_headers={"Accept-Language": self.settings.accept_language},
            )
            context.add_init_script(FINGERPRINT_SCRIPT)
            injected = inject_credentials(context, snapshot)
            page = context.new_page()
        except Exception as exc:  # noqa: BLE001
            for closer in (getattr(browser, "close", None), pw.stop):
                if closer is None:
                    continue
                try:
                    closer()
                except Exception:  # noqa: BLE001
                    continue
            raise SessionInitError(f"Failed to launch browser: {exc}") from exc

        _harvest_event(
            "session",
            step="opened",
            cookies_offered=len(snapshot),
            cookies_injected=injected,
            headless=self.settings.headless,
        )
        return Session(
            playwright=pw,
            browser=browser,
            context=context,
            page=page,
            cookies_injected=injected,
        )


__all__ = ["Session", "SessionBootstrapper", "inject_credentials", "FINGERPRINT_SCRIPT"]
