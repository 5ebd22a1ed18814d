import dataclasses

from app.harvest import expander
from tests.fakes import FAST_SETTINGS, FakeHandle, FakePage, make_session


def test_expands_until_no_links_remain() -> None:
    passes = [[FakeHandle(), FakeHandle()], [FakeHandle()]]
    page = FakePage(more_link_passes=lambda i: passes[i] if i < len(passes) else [])

    total = expander.expand_truncated_text(make_session(page), FAST_SETTINGS)

    assert total == 3
    assert page.more_link_queries == 3
    assert all(h.clicked == 1 and h.scrolled == 1 for p in passes for h in p)


def test_failed_clicks_are_not_counted() -> None:
    handles = [FakeHandle(), FakeHandle(fail=True), FakeHandle()]
    page = FakePage(more_link_passes=lambda i: handles if i == 0 else [])

    assert expander.expand_truncated_text(make_session(page), FAST_SETTINGS) == 2


def test_pass_without_successful_click_stops() -> None:
    page = FakePage(more_link_passes=lambda i: [FakeHandle(fail=True)])

    assert expander.expand_truncated_text(make_session(page), FAST_SETTINGS) == 0
    assert page.more_link_queries == 1


def test_cap_bounds_total_activations() -> None:
    settings = dataclasses.replace(FAST_SETTINGS, expand_cap=5)
    page = FakePage(more_link_passes=lambda i: [FakeHandle(), FakeHandle()])

    assert expander.expand_truncated_text(make_session(page), settings) == 5
