# function_app/shared/errors.py
from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """
    Base for every failure the relay reports to the caller.
    Carries the HTTP status and the source link echoed in the error envelope.
    """
    status: int = 500

    def __init__(self, message: str, *, status: Optional[int] = None, link: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        self.link = link


class MissingParameter(RelayError):
    status = 400


class InvalidSourceURL(RelayError):
    status = 400


class UpstreamError(RelayError):
    """Non-2xx answer from an upstream; the status is mirrored to the caller."""
    prefix = "Upstream request failed"

    def __init__(self, upstream_status: int, reason: str = "", *, link: Optional[str] = None):
        self.upstream_status = int(upstream_status)
        self.reason = reason or ""
        message = f"{self.prefix}: {self.upstream_status} {self.reason}".rstrip()
        super().__init__(message, status=self.upstream_status, link=link)


class UpstreamFetchError(UpstreamError):
    prefix = "Failed to fetch the MediaFire page"


class DownloadFetchError(UpstreamError):
    prefix = "Failed to download the file from the direct link"


class ExtractionFailed(RelayError):
    status = 500
