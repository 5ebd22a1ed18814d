from __future__ import annotations

"""Selector strategies for the Google local reviews page."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ReviewSelectors:
    """Ordered selector candidates per field.

    Class names on the reviews page are obfuscated and change between
    releases. Each field keeps a ranked tuple so a drifted selector can be
    fixed by reordering or adding candidates; extraction and pagination code
    only ever iterate these tuples. All selectors must be understood by both
    the browser and soupsieve (no Playwright-only pseudo classes).
    """

    reviewer_name: Tuple[str, ...] = (".Vpc5Fe",)
    review_body: Tuple[str, ...] = (".OA1nbd",)
    review_date: Tuple[str, ...] = (".y3Ibjb",)
    rating: Tuple[str, ...] = (
        '.dHX2k[role="img"]',
        '[role="img"][aria-label*="out of 5"]',
        '[role="img"][aria-label*="Rated"]',
        '[role="img"][aria-label*="star"]',
        'span[aria-label*="star"]',
    )
    review_id_block: Tuple[str, ...] = ("[data-review-id]",)
    review_controller_block: Tuple[str, ...] = ("div[jscontroller='e6Mltc']",)
    read_more: Tuple[str, ...] = (
        'a.MtCSLb[jsaction="KoToPc"]',
        'a[aria-label*="Read more"]',
        'a[jsaction="KoToPc"]',
    )
    scroll_containers: Tuple[str, ...] = (
        "div[jsname='Wye04d']",
        "div[jsname='ScCUV']",
        ".review-dialog-list",
        "div[role='main'] > div > div",
        "c-wiz",
    )
    sort_controls: Tuple[str, ...] = (
        "g-chip",
        "button",
        "[role='tab']",
        "[role='radio']",
        "[role='button']",
    )
    image_tag: str = "img"
    max_ancestor_levels: int = 8

    @staticmethod
    def join(candidates: Tuple[str, ...]) -> str:
        return ", ".join(candidates)

    @property
    def review_markers(self) -> str:
        """Nodes counted as loaded reviews (pagination progress, readiness)."""

        return self.join(self.reviewer_name + self.review_id_block)


REVIEW_SELECTORS = ReviewSelectors()

__all__ = ["ReviewSelectors", "REVIEW_SELECTORS"]
