"""In-memory stand-ins for the Playwright objects the harvester touches."""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, List, Optional, Sequence

from playwright.sync_api import Error as PWError
from playwright.sync_api import TimeoutError as PWTimeout

from app.harvest.config import HarvestSettings
from app.harvest.pagination import PROGRESS_SCRIPT, SCROLL_SCRIPT
from app.harvest.session import Session

FAST_SETTINGS = HarvestSettings(
    post_load_delay=(0.0, 0.0),
    scroll_delay=(0.0, 0.0),
    reviews_settle_seconds=0,
    sort_settle_seconds=0,
    pre_extract_settle_seconds=0,
    expand_scroll_pause=0,
    expand_click_pause=0,
    expand_pass_pause=0,
)


class FakeHandle:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.scrolled = 0
        self.clicked = 0

    def scroll_into_view_if_needed(self, timeout: Optional[int] = None) -> None:
        self.scrolled += 1

    def click(self, timeout: Optional[int] = None) -> None:
        if self.fail:
            raise PWError("Element is not attached to the DOM")
        self.clicked += 1


class FakeControl:
    def __init__(self, text: str) -> None:
        self.text = text
        self.clicked = 0


class FakeLocator:
    def __init__(self, controls: Sequence[FakeControl]) -> None:
        self._controls = list(controls)

    def filter(self, has_text: Any = None) -> "FakeLocator":
        if has_text is None:
            return self
        pattern = has_text if isinstance(has_text, re.Pattern) else re.compile(re.escape(has_text))
        return FakeLocator([c for c in self._controls if pattern.search(c.text)])

    def count(self) -> int:
        return len(self._controls)

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self._controls[:1])

    def click(self, timeout: Optional[int] = None) -> None:
        if not self._controls:
            raise PWTimeout("locator.click: Timeout exceeded")
        self._controls[0].clicked += 1


class FakePage:
    def __init__(
        self,
        *,
        html: str = "",
        title: str = "Google reviews",
        url: str = "https://search.google.com/local/reviews?placeid=PLACE",
        progress_counts: Iterable[int] = (0,),
        goto_error: Optional[Exception] = None,
        reviews_present: bool = True,
        sort_labels: Sequence[str] = (),
        more_link_passes: Optional[Callable[[int], List[FakeHandle]]] = None,
    ) -> None:
        self.html = html
        self._title = title
        self.url = url
        self._progress = list(progress_counts) or [0]
        self.progress_reads = 0
        self.goto_error = goto_error
        self.reviews_present = reviews_present
        self.controls = [FakeControl(label) for label in sort_labels]
        self._more_link_passes = more_link_passes
        self.more_link_queries = 0
        self.visited: List[str] = []
        self.scrolls = 0
        self.waits: List[int] = []
        self.closed = False

    def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error

    def title(self) -> str:
        return self._title

    def is_closed(self) -> bool:
        return self.closed

    def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    def wait_for_selector(self, selector: str, timeout: Optional[int] = None) -> None:
        if not self.reviews_present:
            raise PWTimeout(f"waiting for locator({selector!r})")

    def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        return None

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self.controls)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        if script == SCROLL_SCRIPT:
            self.scrolls += 1
            return "window"
        if script == PROGRESS_SCRIPT:
            index = min(self.progress_reads, len(self._progress) - 1)
            self.progress_reads += 1
            return {"count": self._progress[index], "height": 1000 + self._progress[index]}
        raise AssertionError(f"unexpected script {script[:40]!r}")

    def query_selector_all(self, selector: str) -> List[FakeHandle]:
        index = self.more_link_queries
        self.more_link_queries += 1
        if self._more_link_passes is None:
            return []
        return self._more_link_passes(index)

    def content(self) -> str:
        return self.html


class _Closable:
    def __init__(self) -> None:
        self.closed = 0

    def close(self) -> None:
        self.closed += 1

    def stop(self) -> None:
        self.closed += 1


def make_session(page: FakePage) -> Session:
    return Session(playwright=_Closable(), browser=_Closable(), context=_Closable(), page=page)


class FakeBootstrapper:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.sessions: List[Session] = []
        self.credentials: tuple = ()

    def open(self, credentials) -> Session:  # noqa: ANN001
        self.credentials = tuple(credentials)
        session = make_session(self.page)
        self.sessions.append(session)
        return session


def review_block(
    index: int,
    name: str,
    rating: Optional[float],
    date: str,
    text: str,
    images: Sequence[str] = (),
) -> str:
    rating_html = (
        f'<span class="dHX2k" role="img" aria-label="Rated {rating:.1f} out of 5,"></span>'
        if rating is not None
        else ""
    )
    image_html = "".join(f'<img src="{src}">' for src in images)
    return (
        f'<div class="jftiEf" data-review-id="r{index}">'
        f'<div class="head"><div class="Vpc5Fe">{name}</div></div>'
        f"<div>{rating_html}<span class=\"y3Ibjb\">{date}</span></div>"
        f'<div class="OA1nbd">{text}<a class="MtCSLb" jsaction="KoToPc" '
        f'aria-label="Read more of review">More</a></div>'
        f"<div>{image_html}</div>"
        f"</div>"
    )


def reviews_page(blocks: Iterable[str]) -> str:
    return (
        "<html><head><title>Google reviews</title></head><body>"
        '<div role="main"><div jsname="Wye04d">'
        + "".join(blocks)
        + "</div></div></body></html>"
    )


class DummyThread:
    """Thread stub that runs the target synchronously in tests."""

    def __init__(self, target, args=(), name=None, daemon: bool = True):  # noqa: ANN001
        self._target = target
        self._args = args
        self.name = name
        self.daemon = daemon

    def start(self) -> None:
        self._target(*self._args)


class DeferredThread(DummyThread):
    """Thread stub that only runs when the test calls :meth:`run`."""

    def start(self) -> None:
        return None

    def run(self) -> None:
        self._target(*self._args)
