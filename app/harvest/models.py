"""Records produced by a harvest and the job wrapper around them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ReviewRecord:
    reviewer_name: str
    rating_raw: str
    rating_stars: Optional[float]
    review_text: str
    review_date_raw: str
    images: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reviewer_name": self.reviewer_name,
            "rating_raw": self.rating_raw,
            "rating_stars": self.rating_stars,
            "review_text": self.review_text,
            "review_date": self.review_date_raw,
            "images": list(self.images),
        }


@dataclass(frozen=True)
class HarvestResult:
    scraped_at: str
    target_id: str
    filter_description: str
    sort_description: str
    reviews: Tuple[ReviewRecord, ...] = ()

    @property
    def count(self) -> int:
        return len(self.reviews)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scraped_at": self.scraped_at,
            "place_id": self.target_id,
            "filter": self.filter_description,
            "sort": self.sort_description,
            "total_one_star_reviews": self.count,
            "reviews": [review.to_dict() for review in self.reviews],
        }


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.ERROR)


@dataclass(frozen=True)
class Job:
    """Immutable job snapshot; the store swaps whole records on change."""

    id: str
    target_id: str
    created_at: datetime
    status: JobStatus = JobStatus.PENDING
    result: Optional[HarvestResult] = field(default=None, repr=False)
    error_message: Optional[str] = None
    finished_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.status is JobStatus.DONE and self.result is not None:
            return {"status": self.status.value, **self.result.to_dict()}
        if self.status is JobStatus.ERROR:
            return {
                "status": self.status.value,
                "place_id": self.target_id,
                "error": self.error_message,
            }
        return {
            "status": self.status.value,
            "place_id": self.target_id,
            "started_at": self.created_at.isoformat(),
        }


__all__ = ["ReviewRecord", "HarvestResult", "JobStatus", "Job"]
