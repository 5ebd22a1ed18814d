from __future__ import annotations

from typing import Any

from .utils import log_line


def _format_fields(fields: dict[str, Any]) -> str:
    return ", ".join(
        f"{key}={value!r}" for key, value in sorted(fields.items()) if value is not None
    )


def _harvest_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Log one ``[HARVEST][LABEL] key=value, ...`` line for a pipeline step.

    Job, nav, scroll, expand and extract events all go through here so a
    single harvest can be followed by grepping its ``job_id``. ``label`` names
    the event kind; ``phase`` names the pipeline step that raised it and
    becomes the label when no label is given. Fields set to ``None`` are left
    out, which keeps CLI runs (no job id) readable.
    """

    try:
        if label and phase:
            fields.setdefault("phase", phase)
        tag = (label or phase or "").upper()
        log_line(f"[HARVEST][{tag}] {_format_fields(fields)}")
    except Exception:  # noqa: BLE001
        return


__all__ = ["_harvest_event"]
