from pathlib import Path

import pytest

from app.harvest.credentials import CredentialSource
from app.harvest.errors import CredentialExpired
from app.harvest.jobs import JobManager
from app.harvest.models import HarvestResult, ReviewRecord
from app.main import create_app
from tests.fakes import DummyThread

VALID_COOKIES = "\n".join(
    [
        "# Netscape HTTP Cookie File",
        ".google.com\tTRUE\t/\tTRUE\t1767225600\tSID\tabcdefghijklmnop",
        ".google.com\tTRUE\t/\tTRUE\t1767225600\tHSID\tqrstuvwxyz",
    ]
)


def _runner(target_id: str, job_id: str) -> HarvestResult:
    if target_id == "EXPIRED":
        raise CredentialExpired("CAPTCHA detected: cookies may be expired. Update at /update-cookies")
    return HarvestResult(
        scraped_at="2024-01-01T00:00:00.000Z",
        target_id=target_id,
        filter_description="1-star reviews only",
        sort_description="newest first",
        reviews=(
            ReviewRecord(
                reviewer_name="Ann",
                rating_raw="Rated 1.0 out of 5,",
                rating_stars=1.0,
                review_text="Never again",
                review_date_raw="3 weeks ago",
            ),
        ),
    )


@pytest.fixture
def source(tmp_path: Path) -> CredentialSource:
    return CredentialSource(cookies_file=tmp_path / "cookies.txt", environ={})


@pytest.fixture
def client(source: CredentialSource):
    manager = JobManager(_runner, thread_factory=DummyThread)
    app = create_app(job_manager=manager, credential_source=source, admin_password="secret")
    app.config["TESTING"] = True
    return app.test_client()


def test_index_lists_endpoints(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "scrape" in response.get_json()["endpoints"]


def test_scrape_requires_placeid(client) -> None:
    response = client.get("/scrape")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing placeid parameter"


def test_scrape_then_poll_result(client) -> None:
    response = client.get("/scrape?placeid=PLACE")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "pending"
    assert payload["result_url"] == f"/result/{payload['job_id']}"

    result = client.get(payload["result_url"]).get_json()
    assert result["status"] == "done"
    assert result["place_id"] == "PLACE"
    assert result["total_one_star_reviews"] == 1
    assert result["reviews"][0]["reviewer_name"] == "Ann"


def test_failed_job_result(client) -> None:
    job_id = client.get("/scrape?placeid=EXPIRED").get_json()["job_id"]

    result = client.get(f"/result/{job_id}").get_json()

    assert result["status"] == "error"
    assert "cookies may be expired" in result["error"]


def test_unknown_job_is_404(client) -> None:
    response = client.get("/result/nope")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Job not found."}


def test_update_cookies_form_shows_status(client) -> None:
    response = client.get("/update-cookies")

    assert response.status_code == 200
    assert b"0 Google cookies" in response.data


def test_update_cookies_wrong_password(client, source) -> None:
    response = client.post("/update-cookies", data={"password": "nope", "cookies": VALID_COOKIES})

    assert response.status_code == 403
    assert source.load_credentials() == ()


def test_update_cookies_rejects_short_text(client) -> None:
    response = client.post("/update-cookies", data={"password": "secret", "cookies": "SID=1"})

    assert response.status_code == 400


def test_update_cookies_rejects_unparseable_text(client) -> None:
    junk = "this is not a cookie file at all, just a long enough paragraph of text"

    response = client.post("/update-cookies", data={"password": "secret", "cookies": junk})

    assert response.status_code == 400
    assert b"No valid Google cookies found" in response.data


def test_update_cookies_sets_override(client, source) -> None:
    response = client.post("/update-cookies", data={"password": "secret", "cookies": VALID_COOKIES})

    assert response.status_code == 200
    assert b"2 Google cookies" in response.data
    assert [c.name for c in source.load_credentials()] == ["SID", "HSID"]
    assert source.describe() == "web form (memory)"


def test_update_cookies_disabled_without_admin_password(source) -> None:
    app = create_app(
        job_manager=JobManager(_runner, thread_factory=DummyThread),
        credential_source=source,
        admin_password="",
    )

    response = app.test_client().post("/update-cookies", data={"password": "", "cookies": VALID_COOKIES})

    assert response.status_code == 403
