from __future__ import annotations

from typing import Literal

from . import config
from .logging_utils import _harvest_event
from .utils import log_line

Entrypoint = Literal["ui", "cli", "tests"]

_DELAY_RANGES = (
    ("POST_LOAD_DELAY_MIN", "POST_LOAD_DELAY_MAX"),
    ("SCROLL_DELAY_MIN", "SCROLL_DELAY_MAX"),
)


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _harvest_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    Non-fatal adjustments (e.g. swapping an inverted delay range) are logged
    but do not raise.
    """

    timeout_fields = [
        ("NAV_TIMEOUT_SECONDS", config.NAV_TIMEOUT_SECONDS),
        ("SELECTOR_TIMEOUT_SECONDS", config.SELECTOR_TIMEOUT_SECONDS),
        ("CLICK_TIMEOUT_MS", config.CLICK_TIMEOUT_MS),
    ]
    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )

    if config.STABILITY_ROUNDS < 1:
        _raise_config_error(
            "STABILITY_ROUNDS must be at least 1.",
            entrypoint=entrypoint,
            error="invalid_stability_rounds",
        )

    if config.EXPAND_CAP < 1:
        _raise_config_error(
            "EXPAND_CAP must be at least 1.",
            entrypoint=entrypoint,
            error="invalid_expand_cap",
        )

    for low_name, high_name in _DELAY_RANGES:
        low = getattr(config, low_name)
        high = getattr(config, high_name)
        if low < 0 or high < 0:
            _raise_config_error(
                f"{low_name}/{high_name} must be non-negative.",
                entrypoint=entrypoint,
                error="negative_delay",
            )
        if low > high:
            _harvest_event(
                "state",
                phase="config",
                context="runtime_validation",
                kind="config_adjustment",
                field=f"{low_name}/{high_name}",
                value=(low, high),
                adjusted=(high, low),
                entrypoint=entrypoint,
            )
            log_line(f"[CONFIG] {low_name} > {high_name}; swapping the range.")
            setattr(config, low_name, high)
            setattr(config, high_name, low)

    if entrypoint == "ui" and not config.ADMIN_PASSWORD:
        log_line("[CONFIG] ADMIN_PASSWORD not set; /update-cookies will reject updates.")


__all__ = ["validate_runtime_config", "Entrypoint"]
