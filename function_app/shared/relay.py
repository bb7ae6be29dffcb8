# function_app/shared/relay.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, Optional, Tuple
from urllib.parse import quote, unquote, unquote_plus, urlparse

import requests

from .config import get, chunk_bytes as default_chunk_bytes, DEFAULT_PROXY_UA
from .errors import DownloadFetchError
from .responses import CORS_HEADERS

LOGGER = logging.getLogger("relay.file")

DEFAULT_FILENAME = "downloaded_file"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Upstream headers that are never forwarded to the caller.
STRIPPED_HEADERS = frozenset({
    "set-cookie",
    "cf-ray",
    "alt-svc",
    "vary",
    "etag",
    "content-encoding",
    "accept-ranges",
})

MIME_EXTENSIONS: Mapping[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "application/pdf": "pdf",
    "application/zip": "zip",
    "application/x-zip-compressed": "zip",
    "application/vnd.rar": "rar",
    "application/x-rar-compressed": "rar",
    "application/x-7z-compressed": "7z",
    "application/gzip": "gz",
    "audio/mpeg": "mp3",
    "video/mp4": "mp4",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
    "application/vnd.ms-powerpoint": "ppt",
    "application/x-bittorrent": "torrent",
    "application/x-iso9660-image": "iso",
    "application/vnd.android.package-archive": "apk",
    "text/plain": "txt",
}

_CD_EXT_RE = re.compile(r"""filename\*\s*=\s*['"]?(?:[\w!#$%&+^`{}~-]+'[\w-]*')?([^;"']+)""", re.IGNORECASE)
_CD_PLAIN_RE = re.compile(r"""(?<![\w*])filename\s*=\s*(?:"([^"]*)"|'([^']*)'|([^;]+))""", re.IGNORECASE)
_HASH_RE = re.compile(r"/file/([a-zA-Z0-9]+)/")
_PLAIN_SUBTYPE_RE = re.compile(r"[a-z0-9]+")
_UNSAFE_HEADER_CHARS = re.compile(r"[\x00-\x1f\x7f]")


# ---------------------------
# Filename inference
# ---------------------------

def filename_from_disposition(value: Optional[str]) -> Optional[str]:
    """
    `filename*` wins over `filename` when both are present.
    Percent-decoded; the RFC 5987 charset/language prefix is dropped.
    """
    if not value:
        return None
    m = _CD_EXT_RE.search(value)
    if m and m.group(1).strip():
        return unquote(m.group(1).strip())
    m = _CD_PLAIN_RE.search(value)
    if m:
        raw = next((g for g in m.groups() if g is not None), "").strip()
        if raw:
            return unquote(raw)
    return None


def filename_from_source_link(link: str) -> Optional[str]:
    """
    Share links look like /file/<hash>/<name>/file.
    Returns the <name> segment, else mediafire_file_<hash>, else None.
    """
    try:
        path = urlparse(link).path
    except ValueError as e:
        LOGGER.debug("could not parse source link %r: %s", link, e)
        return None
    segments = path.split("/")
    name_seg = segments[-2] if len(segments) >= 2 else ""
    if name_seg and name_seg != "file":
        return unquote_plus(name_seg)
    m = _HASH_RE.search(path)
    if m:
        return f"mediafire_file_{m.group(1)}"
    return None


def extension_for_mime(content_type: Optional[str]) -> Optional[str]:
    """
    Known table first; otherwise the MIME subtype, but only when it is a plain
    token (video/webm -> webm). application/octet-stream, image/svg+xml and
    vendor types give None.
    """
    if not content_type:
        return None
    mime = content_type.split(";", 1)[0].strip().lower()
    if mime in MIME_EXTENSIONS:
        return MIME_EXTENSIONS[mime]
    subtype = mime.partition("/")[2]
    if subtype and _PLAIN_SUBTYPE_RE.fullmatch(subtype):
        return subtype
    return None


def infer_filename(headers: Mapping[str, str], source_link: str, content_type: Optional[str] = None) -> str:
    from_header = filename_from_disposition(headers.get("Content-Disposition"))
    if from_header:
        return from_header

    filename = filename_from_source_link(source_link) or DEFAULT_FILENAME
    if "." not in filename:
        ext = extension_for_mime(content_type or headers.get("Content-Type"))
        if ext and ext not in filename:
            filename = f"{filename}.{ext}"
    return filename


def content_disposition(filename: str) -> str:
    safe = _UNSAFE_HEADER_CHARS.sub("", filename).replace('"', "'") or DEFAULT_FILENAME
    try:
        safe.encode("latin-1")
    except UnicodeEncodeError:
        # header values must be latin-1; keep an ASCII name and add the RFC 5987 form
        ascii_name = safe.encode("ascii", "replace").decode("ascii").replace("?", "_")
        return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(safe)}"
    return f'attachment; filename="{safe}"'


# ---------------------------
# Header rewrite
# ---------------------------

def build_relay_headers(upstream: Mapping[str, str], source_link: str) -> Tuple[Dict[str, str], str]:
    """
    Returns (headers, filename) for the outgoing response.
    Only CORS, Content-Type, Content-Length and Content-Disposition are emitted.
    """
    headers: Dict[str, str] = dict(CORS_HEADERS)
    content_type = upstream.get("Content-Type") or DEFAULT_CONTENT_TYPE
    headers["Content-Type"] = content_type

    length = upstream.get("Content-Length")
    encoding = (upstream.get("Content-Encoding") or "").strip().lower()
    # body is decoded on the way through, so an encoded length would be wrong
    if length and encoding in ("", "identity"):
        headers["Content-Length"] = str(length)

    filename = infer_filename(upstream, source_link, content_type)
    headers["Content-Disposition"] = content_disposition(filename)

    for name in list(headers):
        if name.lower() in STRIPPED_HEADERS:
            del headers[name]
    return headers, filename


# ---------------------------
# Relay
# ---------------------------

@dataclass
class RelayedFile:
    status: int
    headers: Dict[str, str]
    filename: str
    response: requests.Response = field(repr=False)
    chunk_bytes: int = 65536

    def iter_body(self) -> Iterator[bytes]:
        for chunk in self.response.iter_content(chunk_size=self.chunk_bytes):
            if chunk:
                yield chunk

    def close(self) -> None:
        try:
            self.response.close()
        except Exception as e:
            LOGGER.debug("closing upstream response failed: %s", e)


def proxy_user_agent(caller_ua: Optional[str]) -> str:
    if caller_ua:
        return caller_ua
    return get("PROXY_USER_AGENT", DEFAULT_PROXY_UA) or DEFAULT_PROXY_UA


def open_relay(
    direct_url: str,
    source_link: str,
    *,
    user_agent: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
    chunk_bytes: Optional[int] = None,
) -> RelayedFile:
    """
    Start the download of the direct URL and prepare the outgoing headers.
    The body is not read here; the caller streams it via iter_body() and
    must close() the RelayedFile afterwards.
    """
    http = session or requests
    resp = http.get(
        direct_url,
        headers={"User-Agent": proxy_user_agent(user_agent)},
        stream=True,
        allow_redirects=True,
        timeout=timeout,
    )
    status = int(resp.status_code)
    if not 200 <= status < 300:
        reason = resp.reason or ""
        resp.close()
        raise DownloadFetchError(status, reason, link=source_link)

    headers, filename = build_relay_headers(resp.headers, source_link)
    LOGGER.debug("relay %s -> %s filename=%s", direct_url, status, filename)
    return RelayedFile(
        status=status,
        headers=headers,
        filename=filename,
        response=resp,
        chunk_bytes=chunk_bytes or default_chunk_bytes(),
    )
