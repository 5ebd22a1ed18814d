from playwright.sync_api import TimeoutError as PWTimeout

from app.harvest import navigation
from app.harvest.navigation import PageState
from tests.fakes import FAST_SETTINGS, FakePage, make_session

URL = "https://search.google.com/local/reviews?placeid=PLACE"


def test_ready_page() -> None:
    page = FakePage()

    assert navigation.load(make_session(page), URL, FAST_SETTINGS) is PageState.READY
    assert page.visited == [URL]


def test_challenge_title_detected() -> None:
    page = FakePage(title="Before you continue - unusual traffic from your computer network")

    assert navigation.load(make_session(page), URL, FAST_SETTINGS) is PageState.CHALLENGED


def test_challenge_url_detected() -> None:
    page = FakePage(title="Google", url="https://www.google.com/sorry/index?continue=x")

    assert navigation.load(make_session(page), URL, FAST_SETTINGS) is PageState.CHALLENGED


def test_timeout_is_reported_not_raised() -> None:
    page = FakePage(goto_error=PWTimeout("Timeout 60000ms exceeded."))

    assert navigation.load(make_session(page), URL, FAST_SETTINGS) is PageState.TIMED_OUT


def test_challenge_wins_over_timeout() -> None:
    page = FakePage(title="Verify it's you", goto_error=PWTimeout("Timeout 60000ms exceeded."))

    assert navigation.load(make_session(page), URL, FAST_SETTINGS) is PageState.CHALLENGED


def test_is_challenge_page_cases() -> None:
    assert navigation.is_challenge_page("reCAPTCHA")
    assert not navigation.is_challenge_page("Joe's Diner - Google reviews")
    assert not navigation.is_challenge_page("", None)


def test_wait_for_reviews_times_out_quietly() -> None:
    session = make_session(FakePage(reviews_present=False))

    assert navigation.wait_for_reviews(session, FAST_SETTINGS) is False
    assert navigation.wait_for_reviews(make_session(FakePage()), FAST_SETTINGS) is True


def test_lowest_rating_sort_clicks_matching_chip() -> None:
    page = FakePage(sort_labels=["Most relevant", "Newest", "Highest rating", "Lowest rating"])

    assert navigation.apply_lowest_rating_sort(make_session(page), FAST_SETTINGS) is True
    assert [c.clicked for c in page.controls] == [0, 0, 0, 1]


def test_lowest_rating_sort_missing_is_not_an_error() -> None:
    page = FakePage(sort_labels=["Most relevant", "Newest"])

    assert navigation.apply_lowest_rating_sort(make_session(page), FAST_SETTINGS) is False
