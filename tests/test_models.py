from datetime import datetime, timezone

from app.harvest.models import Job, JobStatus, ReviewRecord


def test_review_record_serialises_images_as_list() -> None:
    record = ReviewRecord(
        reviewer_name="Ann",
        rating_raw="Rated 1.0 out of 5,",
        rating_stars=1.0,
        review_text="Never again",
        review_date_raw="3 weeks ago",
        images=("https://lh5.googleusercontent.com/p/x=s1600-p-k-rw",),
    )

    assert record.to_dict() == {
        "reviewer_name": "Ann",
        "rating_raw": "Rated 1.0 out of 5,",
        "rating_stars": 1.0,
        "review_text": "Never again",
        "review_date": "3 weeks ago",
        "images": ["https://lh5.googleusercontent.com/p/x=s1600-p-k-rw"],
    }


def test_running_job_reports_start_time() -> None:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    job = Job(id="abc", target_id="PLACE", created_at=created, status=JobStatus.RUNNING)

    assert job.to_dict() == {
        "status": "running",
        "place_id": "PLACE",
        "started_at": "2024-01-01T00:00:00+00:00",
    }
    assert not job.status.is_terminal
