# function_app/shared/landing.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .config import get, DEFAULT_BROWSER_UA
from .errors import UpstreamFetchError

LOGGER = logging.getLogger("relay.landing")

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"


@dataclass
class LandingPage:
    url: str
    status: int
    text: str


def browser_headers() -> dict:
    return {
        "User-Agent": get("BROWSER_USER_AGENT", DEFAULT_BROWSER_UA) or DEFAULT_BROWSER_UA,
        "Accept": HTML_ACCEPT,
    }


def fetch_landing_page(
    link: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> LandingPage:
    """
    GET the share page with a desktop-browser identity.
    Raises UpstreamFetchError on any non-2xx answer.
    """
    http = session or requests
    resp = http.get(link, headers=browser_headers(), timeout=timeout)
    try:
        status = int(resp.status_code)
        if not 200 <= status < 300:
            raise UpstreamFetchError(status, resp.reason or "", link=link)
        text = resp.text
    finally:
        resp.close()
    LOGGER.debug("landing page %s -> %s (%d chars)", link, status, len(text))
    return LandingPage(url=link, status=status, text=text)
