# function_app/shared/extract.py
"""
Direct-link recovery from a MediaFire landing page.

MATCHERS is tried in order and the first non-empty result wins. The markup is
third-party and changes without notice, so new fallbacks go at the end of the
tuple; never reorder the existing entries.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Tuple

from .errors import ExtractionFailed

LOGGER = logging.getLogger("relay.extract")

Matcher = Callable[[str], Optional[str]]

EXTRACTION_FAILED = (
    "Could not find the direct download link on the MediaFire page. "
    "The page structure may have changed."
)

FILE_EXTENSIONS = (
    "zip", "rar", "7z", "exe", "mp4", "mp3", "pdf", "doc", "docx", "xls", "xlsx",
    "ppt", "pptx", "jpg", "jpeg", "png", "gif", "txt", "iso", "apk", "dmg", "deb",
    "rpm", "tar.gz", "gz", "bz2", "xz",
)

_ANCHOR_RE = re.compile(r"<a\b[^>]*>", re.IGNORECASE)
_ID_ATTR_RE = re.compile(r"""(?<![\w-])id\s*=\s*(["'])download-button\1""", re.IGNORECASE)
_HREF_ATTR_RE = re.compile(r"""(?<![\w-])href\s*=\s*(["'])(.*?)\1""", re.IGNORECASE | re.DOTALL)
_DOWNLOAD_URL_RE = re.compile(r"""var\s+download_url\s*=\s*"(https?://[^"]+)";""", re.IGNORECASE)
_DL_LINK_RE = re.compile(r"""window\.dl_link\s*=\s*"(https?://[^"]+)";""", re.IGNORECASE)
_SCRIPT_RE = re.compile(r"<script[^>]*>(.*?)</script>", re.IGNORECASE | re.DOTALL)
# longest alternatives first so tar.gz/docx are not cut short
_EXT_ALT = "|".join(re.escape(e) for e in sorted(FILE_EXTENSIONS, key=len, reverse=True))
_SCRIPT_URL_RE = re.compile(
    r"""(https?://[^\s"'<>;]+\.(?:%s))""" % _EXT_ALT,
    re.IGNORECASE,
)


def match_download_button(html: str) -> Optional[str]:
    for tag in _ANCHOR_RE.finditer(html):
        text = tag.group(0)
        if not _ID_ATTR_RE.search(text):
            continue
        href = _HREF_ATTR_RE.search(text)
        if href and href.group(2):
            return href.group(2)
    return None


def match_download_url_var(html: str) -> Optional[str]:
    m = _DOWNLOAD_URL_RE.search(html)
    return m.group(1) if m else None


def match_window_dl_link(html: str) -> Optional[str]:
    m = _DL_LINK_RE.search(html)
    return m.group(1) if m else None


def match_script_file_url(html: str) -> Optional[str]:
    for block in _SCRIPT_RE.finditer(html):
        m = _SCRIPT_URL_RE.search(block.group(1))
        if m:
            return m.group(1)
    return None


MATCHERS: Tuple[Matcher, ...] = (
    match_download_button,
    match_download_url_var,
    match_window_dl_link,
    match_script_file_url,
)


def find_direct_link(html: str, matchers: Tuple[Matcher, ...] = MATCHERS) -> Tuple[Optional[str], Optional[str]]:
    """Returns (url, matcher_name) for the first matcher that hits, else (None, None)."""
    for matcher in matchers:
        found = matcher(html or "")
        if found:
            return found, matcher.__name__
    return None, None


def extract_direct_link(html: str, *, link: Optional[str] = None) -> str:
    url, name = find_direct_link(html)
    if not url:
        raise ExtractionFailed(EXTRACTION_FAILED, link=link)
    LOGGER.info("direct link via %s: %s", name, url)
    return url
