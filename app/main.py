from __future__ import annotations

import hmac
from typing import Optional

from flask import Flask, Response, jsonify, render_template, request

from app.harvest import config
from app.harvest.config_validation import validate_runtime_config
from app.harvest.credentials import CredentialSource, parse_cookie_text
from app.harvest.jobs import JobManager
from app.harvest.run import build_job_runner
from app.harvest.utils import log_line
from app.harvest.logging_utils import _harvest_event

MIN_COOKIE_TEXT_LENGTH = 50


def _password_ok(candidate: Optional[str], expected: Optional[str]) -> bool:
    if not expected or not candidate:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def create_app(
    job_manager: Optional[JobManager] = None,
    credential_source: Optional[CredentialSource] = None,
    admin_password: Optional[str] = None,
) -> Flask:
    """Build the Flask app around an explicit job manager and cookie source."""

    app = Flask(__name__)
    credentials = credential_source or CredentialSource()
    jobs = job_manager or JobManager(build_job_runner(credentials))
    app.config["CREDENTIAL_SOURCE"] = credentials
    app.config["JOB_MANAGER"] = jobs
    app.config["ADMIN_PASSWORD"] = (
        admin_password if admin_password is not None else config.ADMIN_PASSWORD
    )

    @app.get("/")
    def index() -> Response:
        """Describe the available endpoints."""

        return jsonify(
            {
                "status": "Scraper API is running",
                "endpoints": {
                    "scrape": "GET /scrape?placeid=YOUR_PLACE_ID",
                    "result": "GET /result/<job_id>",
                    "update_cookies": "GET /update-cookies (admin only)",
                },
                "example": "/scrape?placeid=ChIJH8hMgj-7PIgRvtZx_hoMcuc",
            }
        )

    @app.get("/scrape")
    def scrape() -> Response:
        """Start a background harvest and return its job id immediately."""

        place_id = (request.args.get("placeid") or "").strip()
        if not place_id:
            return (
                jsonify(
                    {
                        "error": "Missing placeid parameter",
                        "usage": "GET /scrape?placeid=YOUR_PLACE_ID",
                    }
                ),
                400,
            )

        job_id = jobs.enqueue(place_id)
        return jsonify(
            {
                "job_id": job_id,
                "status": "pending",
                "message": f"Scraping started! Poll /result/{job_id} every 10 seconds.",
                "result_url": f"/result/{job_id}",
            }
        )

    @app.get("/result/<job_id>")
    def result(job_id: str) -> Response:
        job = jobs.get_job(job_id)
        if job is None:
            return jsonify({"error": "Job not found."}), 404
        return jsonify(job.to_dict())

    def _render_cookie_page(message: Optional[str] = None, *, ok: bool = False, status: int = 200):
        return (
            render_template(
                "update_cookies.html",
                cookie_count=len(credentials.load_credentials()),
                source=credentials.describe(),
                message=message,
                ok=ok,
            ),
            status,
        )

    @app.get("/update-cookies")
    def update_cookies_form():
        return _render_cookie_page()

    @app.post("/update-cookies")
    def update_cookies():
        """Replace the in-memory cookie override after a password check."""

        password = request.form.get("password")
        cookie_text = request.form.get("cookies") or ""

        if not _password_ok(password, app.config["ADMIN_PASSWORD"]):
            _harvest_event("admin", step="cookie_update_rejected", reason="password")
            return _render_cookie_page("Wrong password", status=403)

        if len(cookie_text.strip()) < MIN_COOKIE_TEXT_LENGTH:
            return _render_cookie_page("No cookies provided", status=400)

        parsed = parse_cookie_text(cookie_text, credentials.target_domain)
        if not parsed:
            return _render_cookie_page(
                "No valid Google cookies found. Make sure you exported in Netscape "
                "format and are logged into Google.",
                status=400,
            )

        credentials.set_override(cookie_text)
        log_line(f"[ADMIN] Cookies updated via web form! {len(parsed)} Google cookies now active.")
        return _render_cookie_page(
            f"Cookies updated successfully! {len(parsed)} Google cookies are now active. "
            "They are kept in memory only; set GOOGLE_COOKIES to persist them.",
            ok=True,
        )

    return app


app = create_app()


if __name__ == "__main__":
    validate_runtime_config("ui")
    app.run(host="0.0.0.0", port=config.PORT)
