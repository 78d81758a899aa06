"""Payload and response handling for the progress-report endpoint.

Reporting is best-effort: nothing here may raise into the feedback flow.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Optional, Protocol
from urllib.parse import quote

from blockapps.core.outcomes import Outcome
from blockapps.core.progress import LevelProgress
from blockapps.core.urls import Location

logger = logging.getLogger(__name__)

DEFAULT_REPORT_URL = "/report"


class Reporter(Protocol):
    def report(self, app: str, progress: LevelProgress, result: Outcome, program: str) -> None:
        ...


def report_url(location: Location) -> str:
    """Endpoint from ``callback_url``, then BLOCKAPPS_REPORT_URL, then /report."""
    default = os.environ.get("BLOCKAPPS_REPORT_URL", DEFAULT_REPORT_URL)
    url = location.string_param("callback_url", default)
    if url.startswith("/"):
        return f"{location.origin}{url}"
    return url


def build_report_body(app: str, level_id: float, level: int, result: Outcome, program: str) -> str:
    """Form-encoded body; only the program is URL-encoded."""
    return (
        f"app={app}"
        f"&id={level_id}"
        f"&level={level}"
        f"&result={int(result)}"
        "&attempt=1"
        "&time=1"
        f"&program={quote(program, safe='')}"
    )


def parse_redirect(body: bytes) -> Optional[str]:
    """The ``redirect`` field of a JSON response, if there is a usable one."""
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Ignoring report response that is not JSON: %s", e)
        return None
    if not isinstance(payload, dict):
        return None
    redirect = payload.get("redirect")
    if not redirect or not isinstance(redirect, str):
        return None
    return redirect


def apply_report_response(progress: LevelProgress, status: int, body: bytes) -> None:
    """Let a successful response override the next level address."""
    if not 200 <= status < 300:
        logger.warning("Report failed with HTTP status %s", status)
        return
    redirect = parse_redirect(body)
    if redirect:
        logger.info("Server redirects next level to %s", redirect)
        progress.next_level_url = redirect


class NullReporter:
    """Reporter for hosts that have no progress endpoint."""

    def report(self, app: str, progress: LevelProgress, result: Outcome, program: str) -> None:
        logger.debug("Not reporting %s for level %s", result.name, progress.level)
