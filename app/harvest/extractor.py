"""Map a snapshot of the reviews page into :class:`ReviewRecord` objects.

Extraction works on the HTML returned by ``page.content()`` rather than on
live element handles, so it is a pure function of the markup and can be
exercised against saved pages.
"""

from __future__ import annotations

import copy
import re
from typing import Any, Iterable, List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from . import config
from .errors import ExtractionEmpty
from .logging_utils import _harvest_event
from .models import ReviewRecord
from .selectors import REVIEW_SELECTORS, ReviewSelectors
from .utils import log_line

_RATING_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_TRAILING_MORE = re.compile(r"\s*[…\.]{0,3}\s*\bMore\s*$")
_WHITESPACE = re.compile(r"\s+")
_BLOCK_TAGS = frozenset({"div", "p", "li"})
_SKIPPED_TAGS = frozenset({"script", "style"})
_IMAGE_SIZE_SUFFIX = re.compile(r"=(?:s\d+|w\d+(?:-h\d+)?)(?:-[^&=/?#]*)?$")
CANONICAL_IMAGE_SUFFIX = "=s1600-p-k-rw"


def parse_rating(label: Optional[str]) -> Optional[float]:
    """Return the first number in an ARIA rating label, or ``None``.

    ``"4.5 out of 5"`` -> ``4.5``; ``"Rated 1.0"`` -> ``1.0``.
    """

    if not label:
        return None
    match = _RATING_NUMBER.search(label)
    if not match:
        return None
    return float(match.group(0))


def normalize_image_url(url: str) -> str:
    """Rewrite a size/crop suffix to the canonical large variant."""

    url = (url or "").strip()
    return _IMAGE_SIZE_SUFFIX.sub(CANONICAL_IMAGE_SUFFIX, url)


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v for v in values if v))


def _collect_text(node: Tag, parts: List[str]) -> None:
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(_WHITESPACE.sub(" ", str(child)))
        elif child.name == "br":
            parts.append("\n")
        elif child.name in _SKIPPED_TAGS:
            continue
        elif child.name in _BLOCK_TAGS:
            parts.append("\n")
            _collect_text(child, parts)
            parts.append("\n")
        else:
            _collect_text(child, parts)


def _visible_text(tag: Optional[Tag]) -> str:
    """Approximate ``innerText``.

    Source whitespace (newlines included) collapses to single spaces; line
    breaks only come from ``<br>`` and block elements.
    """

    if tag is None:
        return ""
    parts: List[str] = []
    _collect_text(tag, parts)
    lines = (" ".join(line.split()) for line in "".join(parts).split("\n"))
    return "\n".join(line for line in lines if line)


def _first(block: Tag, candidates: Iterable[str]) -> Optional[Tag]:
    for selector in candidates:
        found = block.select_one(selector)
        if found is not None:
            return found
    return None


def _rating_label(block: Tag, selectors: ReviewSelectors) -> str:
    for selector in selectors.rating:
        for element in block.select(selector):
            label = (element.get("aria-label") or "").strip()
            if label:
                return label
    return ""


def _body_text(block: Tag, selectors: ReviewSelectors) -> str:
    body = _first(block, selectors.review_body)
    if body is None:
        return ""
    clone = copy.copy(body)
    for link in clone.select(selectors.join(selectors.read_more)):
        link.decompose()
    return _TRAILING_MORE.sub("", _visible_text(clone)).strip()


def _images(block: Tag, selectors: ReviewSelectors, media_host: str) -> tuple[str, ...]:
    sources = []
    for img in block.find_all(selectors.image_tag):
        src = (img.get("src") or "").strip()
        if src and media_host in src:
            sources.append(normalize_image_url(src))
    return _unique(sources)


def _walk_up_to_block(node: Tag, name_query: str, content_query: str, levels: int) -> Optional[Tag]:
    current = node
    for _ in range(levels):
        current = current.parent
        if current is None or isinstance(current, BeautifulSoup):
            return None
        if current.select_one(name_query) and current.select_one(content_query):
            return current
    return None


def identify_blocks(soup: BeautifulSoup, selectors: ReviewSelectors = REVIEW_SELECTORS) -> List[Tag]:
    """Return review blocks from the first fallback tier that finds any.

    Raises :class:`ExtractionEmpty` when no tier matches.
    """

    name_query = selectors.join(selectors.reviewer_name)
    content_query = selectors.join(selectors.review_body + selectors.review_date)

    blocks: List[Tag] = []
    seen: set[int] = set()
    for name_node in soup.select(name_query):
        block = _walk_up_to_block(
            name_node, name_query, content_query, selectors.max_ancestor_levels
        )
        if block is not None and id(block) not in seen:
            seen.add(id(block))
            blocks.append(block)
    if blocks:
        _harvest_event("extract", step="blocks", tier="name_ancestor", count=len(blocks))
        return blocks

    blocks = soup.select(selectors.join(selectors.review_id_block))
    if blocks:
        _harvest_event("extract", step="blocks", tier="review_id", count=len(blocks))
        return blocks

    blocks = soup.select(selectors.join(selectors.review_controller_block))
    if blocks:
        _harvest_event("extract", step="blocks", tier="controller", count=len(blocks))
        return blocks

    raise ExtractionEmpty("No review blocks matched any selector tier")


def parse_block(
    block: Tag,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
    media_host: str = config.MEDIA_HOST_MARKER,
) -> Optional[ReviewRecord]:
    """Build a record from one block; ``None`` when it has no name and no text."""

    name = _visible_text(_first(block, selectors.reviewer_name))
    text = _body_text(block, selectors)
    if not name and not text:
        return None

    rating_raw = _rating_label(block, selectors)
    return ReviewRecord(
        reviewer_name=name,
        rating_raw=rating_raw,
        rating_stars=parse_rating(rating_raw),
        review_text=text,
        review_date_raw=_visible_text(_first(block, selectors.review_date)),
        images=_images(block, selectors, media_host),
    )


def extract_reviews(
    html: str,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
    media_host: str = config.MEDIA_HOST_MARKER,
) -> List[ReviewRecord]:
    soup = BeautifulSoup(html or "", "html5lib")
    try:
        blocks = identify_blocks(soup, selectors)
    except ExtractionEmpty as exc:
        log_line(f"[EXTRACT] {exc}; returning no reviews")
        _harvest_event("extract", step="empty", error_code=exc.error_code)
        return []

    records = []
    for block in blocks:
        record = parse_block(block, selectors, media_host)
        if record is not None:
            records.append(record)
    _harvest_event(
        "extract",
        step="records",
        blocks=len(blocks),
        records=len(records),
        discarded=len(blocks) - len(records),
    )
    return records


def extract(session: Any, selectors: ReviewSelectors = REVIEW_SELECTORS) -> List[ReviewRecord]:
    """Snapshot the session page and extract its reviews."""

    return extract_reviews(session.page.content(), selectors)


__all__ = [
    "CANONICAL_IMAGE_SUFFIX",
    "extract",
    "extract_reviews",
    "identify_blocks",
    "normalize_image_url",
    "parse_block",
    "parse_rating",
]
