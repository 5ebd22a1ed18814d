"""Playwright harvest of one-star Google reviews for a place.

Workflow:

- Open an isolated Chromium context with the configured Google cookies.
- Load ``https://search.google.com/local/reviews?placeid=<id>`` and bail out
  if Google serves a verification page instead (expired cookies).
- Sort by lowest rating, scroll the review list until it stops growing, and
  click every "More" link so review texts are complete.
- Parse the page snapshot, keep the one-star reviews, newest first.

``run_harvest`` is what background jobs call; ``_cli_entrypoint`` runs one
harvest in the foreground.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from . import expander, extractor, navigation, pagination, postprocess
from .config import HarvestSettings
from .config_validation import validate_runtime_config
from .credentials import Credential, CredentialSource
from .errors import CredentialExpired
from .jobs import JobRunner
from .logging_utils import _harvest_event
from .models import HarvestResult
from .navigation import PageState
from .selectors import REVIEW_SELECTORS, ReviewSelectors
from .session import SessionBootstrapper
from .utils import log_line, wait_seconds

CHALLENGE_MESSAGE = "CAPTCHA detected: cookies may be expired. Update at /update-cookies"


def run_harvest(
    target_id: str,
    credentials: Iterable[Credential],
    settings: Optional[HarvestSettings] = None,
    *,
    bootstrapper: Optional[SessionBootstrapper] = None,
    selectors: ReviewSelectors = REVIEW_SELECTORS,
    job_id: Optional[str] = None,
) -> HarvestResult:
    """Run the full pipeline for ``target_id`` and return the finalized result.

    The browser session is closed on every exit path. Only a challenge page
    and session start-up failures abort the harvest; the other phases log
    and carry on with whatever the page offers.
    """

    settings = settings or HarvestSettings.from_config()
    bootstrapper = bootstrapper or SessionBootstrapper(settings)
    target_url = settings.reviews_url(target_id)
    label = f"[Job {job_id}]" if job_id else "[RUN]"

    log_line(f"{label} Starting harvest for place ID: {target_id}")
    with bootstrapper.open(credentials) as session:
        state = navigation.load(session, target_url, settings)
        if state is PageState.CHALLENGED:
            raise CredentialExpired(CHALLENGE_MESSAGE)
        if state is PageState.TIMED_OUT:
            log_line(f"{label} Navigation timed out; harvesting best-effort.")

        navigation.wait_for_reviews(session, settings, selectors)
        navigation.apply_lowest_rating_sort(session, settings, selectors)
        pagination.expand_all(session, settings, selectors)
        expander.expand_truncated_text(session, settings, selectors)
        wait_seconds(session.page, settings.pre_extract_settle_seconds)
        records = extractor.extract(session, selectors)

    result = postprocess.finalize(records, target_id, settings)
    _harvest_event(
        "run",
        step="finalized",
        job_id=job_id,
        target_id=target_id,
        extracted=len(records),
        kept=result.count,
        page_state=state.value,
    )
    return result


def build_job_runner(
    credential_source: CredentialSource,
    settings_factory=HarvestSettings.from_config,
) -> JobRunner:
    """Return a ``JobManager`` runner that snapshots cookies and settings."""

    def _runner(target_id: str, job_id: str) -> HarvestResult:
        settings = settings_factory()
        credentials = credential_source.load_credentials()
        log_line(f"[Job {job_id}] Loaded {len(credentials)} Google cookies")
        return run_harvest(target_id, credentials, settings, job_id=job_id)

    return _runner


def _cli_entrypoint(argv: Optional[List[str]] = None) -> None:  # pragma: no cover
    parser = argparse.ArgumentParser(description="Harvest one-star Google reviews for a place")
    parser.add_argument("place_id", help="Google place id, e.g. ChIJH8hMgj-7PIgRvtZx_hoMcuc")
    parser.add_argument("--cookies-file", type=Path, default=None)
    parser.add_argument("--output", type=Path, default=None, help="Write JSON here instead of stdout")
    parser.add_argument("--headful", action="store_true", help="Show the browser window")
    args = parser.parse_args(argv)

    validate_runtime_config("cli")
    settings = HarvestSettings.from_config()
    if args.headful:
        settings = dataclasses.replace(settings, headless=False)

    source = CredentialSource(cookies_file=args.cookies_file)
    result = run_harvest(args.place_id, source.load_credentials(), settings)
    payload = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        log_line(f"[RUN] Wrote {result.count} reviews to {args.output}")
    else:
        sys.stdout.write(payload + "\n")


if __name__ == "__main__":  # pragma: no cover
    _cli_entrypoint()

__all__ = ["run_harvest", "build_job_runner", "CHALLENGE_MESSAGE", "_cli_entrypoint"]
