"""Fire-and-forget progress reports over Qt networking."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QUrl
from PySide6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from blockapps.core.outcomes import Outcome
from blockapps.core.progress import LevelProgress
from blockapps.core.report import apply_report_response, build_report_body
from blockapps.core.urls import Location

logger = logging.getLogger(__name__)


class QtReporter(QObject):
    """Posts run results; a JSON ``redirect`` reply overrides the next level."""

    def __init__(self, url: str, location: Location, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._url = url
        self._location = location
        self._manager = QNetworkAccessManager(self)

    def report(self, app: str, progress: LevelProgress, result: Outcome, program: str) -> None:
        if not self._location.is_http:
            logger.debug("Not reporting from %s origin", self._location.scheme)
            return
        request = QNetworkRequest(QUrl(self._url))
        request.setHeader(QNetworkRequest.KnownHeaders.ContentTypeHeader, "application/x-www-form-urlencoded")
        body = build_report_body(app, progress.level_id, progress.level, result, program)
        reply = self._manager.post(request, body.encode("utf-8"))
        reply.finished.connect(lambda: self._on_finished(reply, progress))

    def _on_finished(self, reply: QNetworkReply, progress: LevelProgress) -> None:
        try:
            if reply.error() != QNetworkReply.NetworkError.NoError:
                logger.warning("Report to %s failed: %s", self._url, reply.errorString())
                return
            status = reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute) or 0
            apply_report_response(progress, int(status), bytes(reply.readAll().data()))
        finally:
            reply.deleteLater()
